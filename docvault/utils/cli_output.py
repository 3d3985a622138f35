"""JSON output wrapper for CLI commands.

Every ``--json`` payload carries the same header (schema_id, schema_version,
producer, produced_at) so scripts can detect format changes.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any


def json_response(
    schema_id: str,
    schema_version: int,
    **data: Any,
) -> str:
    """Create schema-wrapped JSON response for CLI output.

    Args:
        schema_id: Identifier for the output type (e.g., "clean_report").
        schema_version: Integer version for backward compatibility.
        **data: Payload data to include in the response.

    Returns:
        JSON string with schema metadata and payload.
    """
    from docvault import __version__

    wrapped = {
        "schema_id": schema_id,
        "schema_version": schema_version,
        "producer": f"docvault-{__version__}",
        "produced_at": datetime.now(UTC).isoformat(),
        **data,
    }
    return json.dumps(wrapped, indent=2, default=str)
