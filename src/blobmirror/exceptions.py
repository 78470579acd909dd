from typing import TYPE_CHECKING, Iterable

from .enums import ErrorCause

if TYPE_CHECKING:
    from .container.models import Blob


class BlobMirrorError(Exception):
    pass


class HttpError(BlobMirrorError):
    def __init__(self, status: int, reason: str, context: str):
        self.status = status
        self.reason = reason
        self.context = context

    def __str__(self):
        return f"Client error '{self.status} {self.reason}'. Context: {self.context}"


class ConfigurationError(BlobMirrorError):
    def __init__(self, message: str, fields: Iterable[str] = ()):
        self.message = message
        self.fields = list(fields)

    def __str__(self):
        return self.message


class ListingError(BlobMirrorError):
    def __init__(self, cause: ErrorCause, detail: str):
        self.cause = cause
        self.detail = detail

    def __str__(self):
        return f"Listing failed ({self.cause.value}): {self.detail}"


class MaterializeError(BlobMirrorError):
    def __init__(self, cause: ErrorCause, blob: "Blob", detail: str):
        self.cause = cause
        self.blob = blob
        self.detail = detail

    def __str__(self):
        return f"Could not materialize {self.blob.name} ({self.cause.value}): {self.detail}"
