"""Error taxonomy shared by stores, handlers and the HTTP boundary.

Every error carries a user-facing message that is safe to return to clients
and the HTTP status the boundary should answer with. Underlying causes are
chained (``raise ... from exc``) and logged, never rendered.
"""

from fastapi import status


class InvoiceError(Exception):
    """Base class for failures surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(InvoiceError):
    """A required credential or endpoint is not configured."""

    default_message = "Storage is not configured"


class InvoiceValidationError(InvoiceError):
    """Incoming payload or file was rejected before reaching a backend."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid invoice submission"


class MissingFileError(InvoiceValidationError):
    default_message = "No file uploaded"


class FileTooLargeError(InvoiceValidationError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_message = "File exceeds the upload size limit"


class UnsupportedFileTypeError(InvoiceValidationError):
    default_message = "Only image files can be uploaded"


class BackendError(InvoiceError):
    """A record store or blob store call failed."""

    default_message = "Failed to save invoice"


class NotFoundError(InvoiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Invoice not found"
