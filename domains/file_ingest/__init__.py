"""
File Ingestion Domain

Watches directories for new files, or takes explicit file trigger messages,
and emits an open read stream plus metadata for each accepted file:
- collectors/ - Directory watcher, inbound file adapter, downstream sinks
- processors/ - File name selection and trigger payload resolution
"""

from domains.file_ingest.collectors.inbound_file_adapter import InboundFileAdapter
from domains.file_ingest.errors import ConfigurationError, FileIngestError
from domains.file_ingest.models import (
    ComponentState,
    OutboundFileMessage,
    TriggerMessage,
)

__all__ = [
    "ComponentState",
    "ConfigurationError",
    "FileIngestError",
    "InboundFileAdapter",
    "OutboundFileMessage",
    "TriggerMessage",
    "collectors",
    "processors",
]
