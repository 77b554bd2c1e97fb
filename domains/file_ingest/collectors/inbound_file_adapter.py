"""
Inbound file adapter.

Watches a directory for new files, or accepts explicit trigger messages naming
files, and emits one message per accepted file carrying an open read stream
plus the file's name, directory and stat info.

Both ingress points (watcher events and trigger messages) converge on
``_ingest``: existence check, stream open, stat, emit.
"""

import asyncio
import inspect
import os
from typing import Any, Callable, List, Mapping, Optional, Set

import aiofiles
import aiofiles.os
from loguru import logger
from pydantic import ValidationError

from domains.file_ingest.collectors.directory_watcher import DirectoryWatcher
from domains.file_ingest.errors import (
    ConfigurationError,
    FileIngestError,
    FileNotAccessibleError,
    StatOrStreamError,
)
from domains.file_ingest.models import (
    AdapterOptions,
    ComponentState,
    FileStat,
    OutboundFileMessage,
    ResolvedFileRequest,
    TriggerMessage,
    WatchConfiguration,
)
from domains.file_ingest.processors.resolver import (
    FileReference,
    parse_trigger_payload,
    request_for_watched_path,
    resolve_reference,
)
from domains.file_ingest.processors.selector import build_selector

DEFAULT_NAME = "file-ingest-inbound"

Outbound = Callable[[OutboundFileMessage, Optional[TriggerMessage]], Any]
ErrorCallback = Callable[[FileIngestError], Any]


class InboundFileAdapter:
    """Turns file arrivals and file trigger messages into stream messages."""

    def __init__(
        self,
        outbound: Outbound,
        options: Optional[Mapping[str, Any]] = None,
        *,
        name: str = DEFAULT_NAME,
        on_error: Optional[ErrorCallback] = None,
    ):
        """
        Initialize the adapter.

        Args:
            outbound: Downstream consumer, called as ``outbound(message, origin)``.
                May return an awaitable.
            options: Optional options, see ``configure``
            name: Step name used in logs
            on_error: Receives every runtime error reported by this adapter.
                May return an awaitable; failures inside it are logged.
        """
        self.name = name
        self.type: Optional[str] = None
        self.outbound = outbound
        self.on_error = on_error
        self.state = ComponentState.CREATED
        self.config = WatchConfiguration()
        self.watcher: Optional[DirectoryWatcher] = None
        self._transition = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()
        self.log = logger.bind(step=self.name)

        if options:
            self.configure(options)

    # Configuration ---------------------------------------------------------------

    def configure(self, options: Mapping[str, Any]) -> None:
        """
        Validate and store options.

        Recognised keys (camelCase aliases in brackets): ``watch_dir``
        (``watchDir``), ``only_read_new_files`` (``onlyReadNewFiles``, default
        True), ``regex`` (``regEx``), ``filter``, ``recursive`` (default True),
        plus the opaque identity fields ``name`` and ``type``.

        Raises:
            ConfigurationError: invalid filter, pattern or option value, or the
                adapter is running
        """
        if self.state is ComponentState.RUNNING:
            raise ConfigurationError("Options cannot change while the adapter is running")

        try:
            parsed = AdapterOptions.model_validate(dict(options))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid adapter options: {e}") from e

        selector = build_selector(filter=parsed.filter, regex=parsed.regex)

        if parsed.name:
            self.name = parsed.name
            self.log = logger.bind(step=self.name)
        self.type = parsed.type
        self.config = WatchConfiguration(
            root_directory=parsed.watch_dir,
            replay_existing=not parsed.only_read_new_files,
            selector=selector,
            recursive=parsed.recursive,
        )
        self.log.debug(f"Configured with {selector.describe()}, watch_dir={parsed.watch_dir}")

    # Lifecycle -------------------------------------------------------------------

    async def start(self) -> "InboundFileAdapter":
        """Start watching the configured directory, if any. Idempotent."""
        async with self._transition:
            if self.state is ComponentState.RUNNING:
                return self

            root = self.config.root_directory
            if root is not None:
                watcher = DirectoryWatcher(
                    root,
                    self._on_file_added,
                    recursive=self.config.recursive,
                    replay_existing=self.config.replay_existing,
                )
                self.log.info(f"Start watching directory {root}")
                previous = self.state
                # Flip state first so replayed files are not dropped
                self.state = ComponentState.RUNNING
                try:
                    await asyncio.to_thread(watcher.start)
                except OSError as e:
                    self.state = previous
                    self.log.error(f"Failed to watch {root}: {e}")
                    raise
                self.watcher = watcher

            self.state = ComponentState.RUNNING
            self.log.success(f"Adapter '{self.name}' started")
            return self

    async def stop(self) -> "InboundFileAdapter":
        """
        Stop watching. Idempotent.

        Work already in flight is not cancelled; use ``wait_idle`` to await it.
        """
        async with self._transition:
            if self.state is not ComponentState.RUNNING:
                return self

            self.state = ComponentState.STOPPED
            watcher, self.watcher = self.watcher, None
            if watcher is not None:
                await asyncio.to_thread(watcher.stop)
                self.log.info("Stop watching directory")

            self.log.success(f"Adapter '{self.name}' stopped")
            return self

    async def wait_idle(self) -> None:
        """Wait until every watcher-originated ingestion has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # Ingress: directory watcher --------------------------------------------------

    def _on_file_added(self, raw_path: str) -> None:
        if self.state is not ComponentState.RUNNING:
            return

        request = request_for_watched_path(raw_path)
        selector = self.config.selector
        if not selector.accepts(request.base_name):
            self.log.debug(f"{selector.describe()} rejected {request.base_name}")
            return

        task = asyncio.ensure_future(self._ingest(request, None, endpoint="watch"))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    # Ingress: trigger endpoint ---------------------------------------------------

    async def receive_trigger(
        self,
        message: TriggerMessage,
        on_error: Optional[ErrorCallback] = None,
    ) -> List[OutboundFileMessage]:
        """
        Handle a trigger message naming one or more files.

        Each referenced file is resolved and emitted independently and
        concurrently; failures are reported through the error channel and
        never raised.

        Args:
            message: Trigger message; its payload is a path, a list of paths or
                ``{"directory": ..., "files": [...]}``
            on_error: Extra error callback scoped to this request

        Returns:
            The messages that were delivered downstream
        """
        try:
            payload = parse_trigger_payload(message.payload)
        except FileIngestError as e:
            e.trigger = message
            await self._report(e, on_error)
            return []

        results = await asyncio.gather(
            *(
                self._resolve_and_ingest(reference, payload.directory, message, on_error)
                for reference in payload.references
            )
        )
        return [result for result in results if result is not None]

    async def _resolve_and_ingest(
        self,
        reference: FileReference,
        directory: Optional[FileReference],
        message: TriggerMessage,
        on_error: Optional[ErrorCallback],
    ) -> Optional[OutboundFileMessage]:
        try:
            request = resolve_reference(reference, directory)
        except FileIngestError as e:
            e.trigger = message
            await self._report(e, on_error)
            return None

        return await self._ingest(request, message, on_error=on_error)

    # Shared path -----------------------------------------------------------------

    async def _ingest(
        self,
        request: ResolvedFileRequest,
        origin: Optional[TriggerMessage],
        *,
        endpoint: str = "trigger",
        on_error: Optional[ErrorCallback] = None,
    ) -> Optional[OutboundFileMessage]:
        path = request.absolute_path

        try:
            readable = await aiofiles.os.access(path, os.R_OK)
        except (OSError, ValueError):
            # Unrepresentable paths, e.g. embedded NUL bytes
            readable = False

        if not readable:
            await self._report(
                FileNotAccessibleError(
                    f"The file '{path}' does not exist",
                    path=path,
                    endpoint=endpoint,
                    trigger=origin,
                ),
                on_error,
            )
            return None

        try:
            stream = await aiofiles.open(path, mode="rb")
        except (OSError, ValueError) as e:
            await self._report(
                StatOrStreamError(
                    f"Could not open '{path}': {e}", path=path, endpoint=endpoint, trigger=origin
                ),
                on_error,
            )
            return None

        try:
            stat_result = await aiofiles.os.stat(path)
        except OSError as e:
            await stream.close()
            await self._report(
                StatOrStreamError(
                    f"Could not stat '{path}': {e}", path=path, endpoint=endpoint, trigger=origin
                ),
                on_error,
            )
            return None

        file_stat = FileStat.from_stat_result(stat_result)
        outbound = self._compose(request, file_stat, stream, origin)
        if await self._emit(outbound, origin):
            return outbound
        return None

    def _compose(
        self,
        request: ResolvedFileRequest,
        file_stat: FileStat,
        stream: Any,
        origin: Optional[TriggerMessage],
    ) -> OutboundFileMessage:
        header = dict(origin.header) if origin is not None else {}
        header.update(
            {
                "file_name": request.base_name,
                "directory": str(request.directory),
                "file_stat": file_stat,
            }
        )
        return OutboundFileMessage(
            file_name=request.base_name,
            directory=request.directory,
            file_stat=file_stat,
            payload=stream,
            header=header,
            hops=list(origin.hops) if origin is not None else [],
        )

    async def _emit(self, message: OutboundFileMessage, origin: Optional[TriggerMessage]) -> bool:
        try:
            result = self.outbound(message, origin)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.log.error(f"Downstream consumer failed for {message.absolute_path}: {e}")
            return False

        self.log.info(f"Emitted {message.absolute_path} ({message.file_stat.size} bytes)")
        return True

    async def _report(self, error: FileIngestError, on_error: Optional[ErrorCallback] = None) -> None:
        self.log.bind(endpoint=error.endpoint).error(f"[{error.code}] {error.message}")
        for callback in (self.on_error, on_error):
            if callback is None:
                continue
            try:
                result = callback(error)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self.log.exception(f"Error callback failed while reporting {error.code}")
