"""docvault CLI application with Typer."""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import click
import typer

from docvault import __version__
from docvault.bootstrap import bootstrap_application, resolve_tesseract
from docvault.config import get_settings, set_settings
from docvault.errors import DocumentNotFoundError, JobBusyError
from docvault.logging_setup import configure_logging
from docvault.utils.cli_output import json_response

if TYPE_CHECKING:
    from docvault.app.ports import Document
    from docvault.bootstrap import ApplicationContainer

app = typer.Typer(
    name="docvault",
    help="Watched-folder document ingestion with OCR fallback and full-text search",
    add_completion=True,
    no_args_is_help=True,
)

LOG_LEVEL_CHOICES = ["debug", "info", "warn", "warning", "error"]


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"docvault version {__version__}")
        raise typer.Exit()


@contextmanager
def _application() -> Iterator["ApplicationContainer"]:
    container = bootstrap_application()
    try:
        yield container
    finally:
        container.close()


def _fail(message: str, code: int = 1) -> typer.Exit:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(code=code)


def _echo_document(document: "Document") -> None:
    typer.echo(f"{document.id}  {document.name}")
    typer.echo(f"   path:   {document.path}")
    typer.echo(f"   folder: {document.folder or '/'}")
    if document.url:
        typer.echo(f"   url:    {document.url}")


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Override data directory"),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Logging level",
            click_type=click.Choice(LOG_LEVEL_CHOICES, case_sensitive=False),
        ),
    ] = None,
) -> None:
    """docvault - ingest, store and search documents."""
    # Update settings with CLI flags
    settings = get_settings()
    if data_dir:
        settings.data_dir = data_dir
    if log_level:
        settings.log_level = log_level
    set_settings(settings)
    configure_logging(settings.log_level, settings.log_file)


@app.command("serve")
def serve() -> None:
    """Publish document routes and run scheduled ingestion until interrupted."""
    with _application() as container:
        published = container.service.publish_all_routes()
        container.scheduler.start()
        typer.secho(
            f"Serving {published} document(s); ingesting {container.settings.get_ingress_dir()} "
            f"every {container.settings.ingress_interval} minute(s). Press Ctrl-C to stop.",
            fg=typer.colors.GREEN,
        )
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            typer.echo("Shutting down...")


# Ingest subcommand
ingest_app = typer.Typer(help="Ingress processing")
app.add_typer(ingest_app, name="ingest")


@ingest_app.command("run")
def ingest_run(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output report as JSON"),
    ] = False,
) -> None:
    """Process everything currently in the ingress folder."""
    with _application() as container:
        try:
            report = container.service.run_ingestion()
        except JobBusyError as exc:
            raise _fail(str(exc)) from exc

    if json_output:
        typer.echo(json_response("ingest_report", 1, **report.model_dump(mode="json")))
        return

    typer.secho(
        f"Scanned {report.scanned}, registered {report.registered}, "
        f"skipped {report.skipped}, failed {report.failed}",
        fg=typer.colors.GREEN if report.failed == 0 else typer.colors.YELLOW,
    )
    for path in report.failed_paths:
        typer.echo(f"   failed: {path}")


@ingest_app.command("file")
def ingest_file(
    path: Annotated[Path, typer.Argument(help="File to upload", exists=True, dir_okay=False)],
    folder: Annotated[
        str,
        typer.Option("--folder", "-f", help="Sub-folder of ingress to place the file in"),
    ] = "",
) -> None:
    """Upload a single file through the ingestion pipeline."""
    with _application() as container:
        try:
            registration = container.service.upload(path.name, path.read_bytes(), folder)
        except ValueError as exc:
            raise _fail(str(exc)) from exc

        if registration is None or registration.document is None:
            raise _fail(f"{path.name} could not be ingested; it was left in ingress")

        _echo_document(registration.document)
        if registration.duplicate_of:
            typer.secho(
                f"   duplicate of {registration.duplicate_of}", fg=typer.colors.YELLOW
            )
        for error in registration.errors:
            typer.secho(f"   warning: {error}", fg=typer.colors.YELLOW)


@app.command("clean")
def clean(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output report as JSON"),
    ] = False,
) -> None:
    """Reconcile the database, search index and document storage."""
    with _application() as container:
        try:
            report = container.service.clean()
        except JobBusyError as exc:
            raise _fail(str(exc)) from exc

    if json_output:
        typer.echo(json_response("clean_report", 1, **report.model_dump(mode="json")))
        return

    typer.secho(
        f"Checked {report.scanned} document(s): removed {report.deleted}, "
        f"returned {report.moved} orphan file(s) to ingress, {report.errors} error(s)",
        fg=typer.colors.GREEN if report.errors == 0 else typer.colors.YELLOW,
    )


@app.command("search")
def search(
    query: Annotated[str, typer.Argument(help="Search term; multiple words match as a phrase")],
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum results to return", min=1),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results as JSON"),
    ] = False,
) -> None:
    """Search document text and names."""
    if not query.strip():
        raise _fail("Query cannot be empty")

    with _application() as container:
        try:
            response = container.service.search(query, limit=limit)
        except ValueError as exc:
            raise _fail(str(exc)) from exc

    if json_output:
        typer.echo(
            json_response(
                "search_results",
                1,
                query=query,
                total_hits=response.total,
                results=[result.model_dump(mode="json") for result in response.documents],
            )
        )
        return

    if not response.documents:
        typer.secho("No results found", fg=typer.colors.YELLOW)
        return

    typer.secho(f"Found {response.total} result(s) for '{query}':", fg=typer.colors.BLUE)
    for i, result in enumerate(response.documents, 1):
        typer.echo(f"\n{i}. {result.document.path} (score: {result.score:.2f})")
        if result.snippet:
            typer.echo(f"   {result.snippet}")


# Docs subcommand
docs_app = typer.Typer(help="Stored document management")
app.add_typer(docs_app, name="docs")


@docs_app.command("latest")
def docs_latest(
    page: Annotated[int, typer.Option("--page", "-p", help="Page number", min=1)] = 1,
    page_size: Annotated[
        int, typer.Option("--page-size", help="Documents per page", min=1)
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output page as JSON"),
    ] = False,
) -> None:
    """List the most recently ingested documents."""
    with _application() as container:
        result = container.service.latest_documents(page, page_size)

    if json_output:
        typer.echo(json_response("document_page", 1, **result.model_dump(mode="json")))
        return

    if not result.documents:
        typer.secho("No documents", fg=typer.colors.YELLOW)
        return

    for document in result.documents:
        typer.echo(f"{document.id}  {document.ingress_time:%Y-%m-%d %H:%M}  {document.name}")
    typer.echo(
        f"\nPage {result.page} of {result.total_pages} ({result.total_count} document(s))"
    )


@docs_app.command("get")
def docs_get(
    document_id: Annotated[str, typer.Argument(help="Document id")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output document as JSON"),
    ] = False,
) -> None:
    """Show one document."""
    with _application() as container:
        try:
            document = container.service.get_document(document_id)
        except DocumentNotFoundError as exc:
            raise _fail(str(exc)) from exc

    if json_output:
        typer.echo(json_response("document", 1, **document.model_dump(mode="json")))
        return
    _echo_document(document)


@docs_app.command("delete")
def docs_delete(
    document_id: Annotated[str, typer.Argument(help="Document id")],
) -> None:
    """Delete a document, its stored file and its index entry."""
    with _application() as container:
        try:
            document = container.service.delete_document(document_id)
        except DocumentNotFoundError as exc:
            raise _fail(str(exc)) from exc
    typer.secho(f"Deleted {document.id} ({document.name})", fg=typer.colors.GREEN)


@docs_app.command("move")
def docs_move(
    folder: Annotated[str, typer.Argument(help="Target logical folder")],
    document_ids: Annotated[list[str], typer.Argument(help="Document ids to move")],
) -> None:
    """Assign documents to a logical folder."""
    with _application() as container:
        try:
            moved = container.service.move_documents(document_ids, folder)
        except DocumentNotFoundError as exc:
            raise _fail(str(exc)) from exc
    typer.secho(f"Moved {moved} document(s) to '{folder}'", fg=typer.colors.GREEN)


@app.command("doctor")
def doctor() -> None:
    """Report configured directories and OCR availability."""
    settings = get_settings()
    typer.echo(f"docvault {__version__}")
    typer.echo(f"Data directory:     {settings.get_data_dir()}")
    typer.echo(f"Database:           {settings.get_database_path()}")
    typer.echo(f"Ingress:            {settings.get_ingress_dir()}")
    typer.echo(f"Document storage:   {settings.get_document_dir()}")
    if not settings.ingress_delete:
        typer.echo(f"Processed folder:   {settings.get_ingress_move_dir()}")

    executable = resolve_tesseract(settings)
    if settings.tesseract_path is None:
        typer.secho("OCR:                disabled (no tesseract path)", fg=typer.colors.YELLOW)
    elif executable is None:
        typer.secho(
            f"OCR:                tesseract not found at {settings.tesseract_path}"
            " (images and scanned PDFs stay in ingress)",
            fg=typer.colors.RED,
        )
    else:
        typer.secho(f"OCR:                {executable}", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
