"""Exception hierarchy shared by the ingestion core."""


class DocvaultError(Exception):
    """Base class for docvault errors."""


class ExtractionError(DocvaultError):
    """Raised by an extraction policy that could not produce text."""


class UnsupportedConversionError(ExtractionError):
    """Raised when the word converter cannot handle a format."""


class RegistrationError(DocvaultError):
    """Raised when a document row could not be created.

    Nothing has been moved and no URL has been published when this is raised.
    """


class DocumentNotFoundError(DocvaultError):
    """Raised when a document id has no matching row."""


class JobBusyError(DocvaultError):
    """Raised when a synchronous job run finds another job in progress."""
