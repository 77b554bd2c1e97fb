"""Downstream consumers for outbound file messages."""

from typing import List, Optional

from loguru import logger

from app.utils.helpers import format_bytes
from domains.file_ingest.models import OutboundFileMessage, TriggerMessage


class LoggingSink:
    """
    Drains each stream, closes it and logs what arrived.

    Stands in for a real downstream step when the adapter runs on its own.
    """

    def __init__(self, chunk_size: int = 64 * 1024, history: int = 100):
        self.chunk_size = chunk_size
        self.history = history
        self.received: List[str] = []

    async def __call__(self, message: OutboundFileMessage, origin: Optional[TriggerMessage] = None) -> int:
        total = 0
        try:
            while True:
                chunk = await message.payload.read(self.chunk_size)
                if not chunk:
                    break
                total += len(chunk)
        finally:
            await message.payload.close()

        self.received.append(str(message.absolute_path))
        del self.received[:-self.history]

        source = "trigger" if origin is not None else "watch"
        logger.info(f"Received {message.file_name} from {message.directory} via {source} ({format_bytes(total)})")
        return total
