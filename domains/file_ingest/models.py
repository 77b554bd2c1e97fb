"""
Data models for the file ingestion trigger.

Messages flowing through the adapter are plain dataclasses; the option set
supplied by the host is validated with pydantic.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domains.file_ingest.processors.selector import AcceptAll, Selector


class ComponentState(str, Enum):
    """Lifecycle state of an adapter instance."""

    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


class AdapterOptions(BaseModel):
    """Options accepted by ``InboundFileAdapter.configure``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    type: Optional[str] = None
    watch_dir: Optional[Path] = Field(default=None, alias="watchDir")
    only_read_new_files: bool = Field(default=True, alias="onlyReadNewFiles")
    regex: Optional[str] = Field(default=None, alias="regEx")
    filter: Optional[Any] = None
    recursive: bool = True


@dataclass(frozen=True, slots=True)
class WatchConfiguration:
    """Immutable watch settings derived from validated options."""

    root_directory: Optional[Path] = None
    replay_existing: bool = False
    selector: Selector = field(default_factory=AcceptAll)
    recursive: bool = True


@dataclass(slots=True)
class TriggerMessage:
    """Inbound request naming one or more files to ingest."""

    payload: Any = None
    header: Dict[str, Any] = field(default_factory=dict)
    hops: List[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TriggerMessage":
        return cls(
            payload=data.get("payload"),
            header=dict(data.get("header") or {}),
            hops=list(data.get("hops") or []),
        )


@dataclass(frozen=True, slots=True)
class ResolvedFileRequest:
    """Absolute form of a single file reference, ready for the existence check."""

    absolute_path: Path
    directory: Path
    base_name: str

    @classmethod
    def from_absolute(cls, path: Path) -> "ResolvedFileRequest":
        return cls(absolute_path=path, directory=path.parent, base_name=path.name)


@dataclass(frozen=True, slots=True)
class FileStat:
    """Subset of ``os.stat_result`` carried with every outbound message."""

    size: int
    mtime: float
    ctime: float
    mode: int
    inode: int

    @classmethod
    def from_stat_result(cls, result: os.stat_result) -> "FileStat":
        return cls(
            size=result.st_size,
            mtime=result.st_mtime,
            ctime=result.st_ctime,
            mode=result.st_mode,
            inode=result.st_ino,
        )

    @property
    def modified(self) -> datetime:
        return datetime.fromtimestamp(self.mtime, tz=timezone.utc)


@dataclass(slots=True)
class OutboundFileMessage:
    """
    One accepted file, handed to the downstream consumer.

    ``payload`` is an open asynchronous binary file object. The consumer owns
    it once the message has been delivered and is responsible for closing it.
    """

    file_name: str
    directory: Path
    file_stat: FileStat
    payload: Any
    header: Dict[str, Any] = field(default_factory=dict)
    hops: List[Any] = field(default_factory=list)

    @property
    def absolute_path(self) -> Path:
        return self.directory / self.file_name
