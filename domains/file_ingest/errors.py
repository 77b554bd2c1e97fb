"""
Error taxonomy for the file ingestion trigger.

Only ConfigurationError is raised to callers. Everything else is reported
through the adapter's error channel and never escapes the lifecycle or
intake operations.
"""

from pathlib import Path
from typing import Any, Optional


class FileIngestError(Exception):
    """Base class for all file ingestion errors."""

    code = "FileIngestError"

    def __init__(
        self,
        message: str,
        *,
        path: Optional[Path] = None,
        endpoint: str = "trigger",
        trigger: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = path
        self.endpoint = endpoint
        self.trigger = trigger

    def as_dict(self) -> dict:
        """Flatten the error for logs and API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "endpoint": self.endpoint,
            "path": str(self.path) if self.path else None,
        }


class ConfigurationError(FileIngestError):
    """Invalid filter, pattern or option value."""

    code = "ConfigurationError"


class MissingPayloadError(FileIngestError):
    code = "MissingPayload"


class UnsupportedPayloadError(FileIngestError):
    code = "UnsupportedPayload"


class InvalidFilesFieldError(FileIngestError):
    code = "InvalidFilesField"


class MissingDirectoryForRelativePathError(FileIngestError):
    code = "MissingDirectoryForRelativePath"


class FileNotAccessibleError(FileIngestError):
    """The resolved path does not exist or is not readable."""

    code = "FileNotFound"


class StatOrStreamError(FileIngestError):
    """The file passed the existence check but could not be opened or stat'ed."""

    code = "StatOrStreamFailure"
