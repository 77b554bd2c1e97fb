"""
Trigger payload parsing and path resolution.

A raw payload is classified once into one of three shapes. After that the
adapter only deals with (base directory, reference) pairs.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from domains.file_ingest.errors import (
    InvalidFilesFieldError,
    MissingDirectoryForRelativePathError,
    MissingPayloadError,
    UnsupportedPayloadError,
)
from domains.file_ingest.models import ResolvedFileRequest
from app.utils.helpers import normalise_path

FileReference = Union[str, os.PathLike]


@dataclass(frozen=True)
class SingleReference:
    """A bare path string."""

    reference: FileReference

    @property
    def directory(self) -> Optional[FileReference]:
        return None

    @property
    def references(self) -> Tuple[FileReference, ...]:
        return (self.reference,)


@dataclass(frozen=True)
class ReferenceList:
    """An ordered sequence of path strings, no shared directory."""

    references: Tuple[FileReference, ...]

    @property
    def directory(self) -> Optional[FileReference]:
        return None


@dataclass(frozen=True)
class StructuredRequest:
    """``{"directory": ..., "files": [...]}``"""

    references: Tuple[FileReference, ...]
    directory: Optional[FileReference] = None


TriggerPayload = Union[SingleReference, ReferenceList, StructuredRequest]


def _is_reference(value: Any) -> bool:
    return isinstance(value, (str, os.PathLike))


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def parse_trigger_payload(payload: Any) -> TriggerPayload:
    """
    Classify a raw trigger payload.

    Args:
        payload: Message payload as received on the trigger endpoint

    Returns:
        The matching payload variant

    Raises:
        MissingPayloadError: payload is absent or empty
        InvalidFilesFieldError: structured payload whose ``files`` is not a list of strings
        UnsupportedPayloadError: any other shape
    """
    if payload is None or payload == "":
        raise MissingPayloadError("No payload in the message")

    if _is_reference(payload):
        return SingleReference(payload)

    if _is_sequence(payload):
        if not all(_is_reference(item) for item in payload):
            raise UnsupportedPayloadError("Payload list must only contain file names")
        return ReferenceList(tuple(payload))

    if isinstance(payload, Mapping) and "files" in payload:
        files = payload["files"]
        if not _is_sequence(files) or not all(_is_reference(item) for item in files):
            raise InvalidFilesFieldError(
                "The 'files' property of the payload object must be an array of file names"
            )
        directory = payload.get("directory") or None
        if directory is not None and not _is_reference(directory):
            raise UnsupportedPayloadError("The 'directory' property of the payload must be a path")
        return StructuredRequest(tuple(files), directory)

    raise UnsupportedPayloadError("No matching payload in the message for this step")


def resolve_reference(
    reference: FileReference,
    directory: Optional[FileReference] = None,
) -> ResolvedFileRequest:
    """
    Turn one file reference into an absolute request.

    Absolute references ignore ``directory``. Relative references are joined
    onto it and normalised without following symlinks.

    Raises:
        MissingDirectoryForRelativePathError: relative reference and no directory
    """
    path = Path(reference)

    if path.is_absolute():
        return ResolvedFileRequest.from_absolute(path)

    if not directory:
        raise MissingDirectoryForRelativePathError(
            f"For relative file names the directory is mandatory: '{reference}'",
            path=path,
        )

    absolute = Path(os.path.abspath(os.path.join(directory, reference)))
    return ResolvedFileRequest.from_absolute(absolute)


def request_for_watched_path(raw_path: FileReference) -> ResolvedFileRequest:
    """Build a request for a path reported by the directory watcher."""
    return ResolvedFileRequest.from_absolute(normalise_path(Path(os.fsdecode(raw_path))))
