"""
Tests for the inbound file adapter's trigger endpoint, configuration and lifecycle.

Directory watching is covered in test_directory_watcher.py.
"""

import asyncio

import aiofiles.os
import pytest

from domains.file_ingest import ComponentState, ConfigurationError, InboundFileAdapter, TriggerMessage
from domains.file_ingest.processors.selector import AcceptAll, CustomPredicate, Pattern


def codes(errors):
    return [error.code for error in errors]


# ---------------------------------------------------------------------------
# Trigger endpoint
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_string_payload_existing_file(collector, errors, fixtures_dir):
    adapter = InboundFileAdapter(collector, on_error=errors.append)
    await adapter.start()

    emitted = await adapter.receive_trigger(TriggerMessage(payload=str(fixtures_dir / "existing_file.csv")))

    assert collector.names == ["existing_file.csv"]
    assert emitted == collector.messages
    message = collector.messages[0]
    assert message.directory == fixtures_dir
    assert message.file_stat.size == (fixtures_dir / "existing_file.csv").stat().st_size
    assert errors == []


@pytest.mark.asyncio
async def test_string_payload_missing_file(collector, errors, fixtures_dir):
    adapter = InboundFileAdapter(collector, on_error=errors.append)
    await adapter.start()

    missing = fixtures_dir / "gumbo.csv"
    emitted = await adapter.receive_trigger(TriggerMessage(payload=str(missing)))

    assert emitted == []
    assert collector.names == []
    assert codes(errors) == ["FileNotFound"]
    assert errors[0].path == missing
    assert str(missing) in errors[0].message


@pytest.mark.asyncio
async def test_list_payload_one_missing(collector, errors, fixtures_dir):
    adapter = InboundFileAdapter(collector, on_error=errors.append)

    await adapter.receive_trigger(
        TriggerMessage(payload=[str(fixtures_dir / "gumbo.csv"), str(fixtures_dir / "existing_file.csv")])
    )

    assert collector.names == ["existing_file.csv"]
    assert codes(errors) == ["FileNotFound"]


@pytest.mark.asyncio
async def test_structured_payload_absolute_files(collector, errors, fixtures_dir):
    adapter = InboundFileAdapter(collector, on_error=errors.append)

    await adapter.receive_trigger(
        TriggerMessage(
            payload={
                "directory": "/does/not/matter",
                "files": [str(fixtures_dir / "gumbo.csv"), str(fixtures_dir / "existing_file.csv")],
            }
        )
    )

    assert collector.names == ["existing_file.csv"]
    assert collector.messages[0].directory == fixtures_dir


@pytest.mark.asyncio
async def test_structured_payload_relative_files(collector, errors, fixtures_dir):
    adapter = InboundFileAdapter(collector, on_error=errors.append)

    await adapter.receive_trigger(
        TriggerMessage(payload={"directory": str(fixtures_dir), "files": ["gumbo.csv", "existing_file.csv"]})
    )

    assert collector.names == ["existing_file.csv"]
    assert codes(errors) == ["FileNotFound"]


@pytest.mark.asyncio
async def test_relative_file_without_directory(collector, errors, fixtures_dir):
    adapter = InboundFileAdapter(collector, on_error=errors.append)

    await adapter.receive_trigger(TriggerMessage(payload={"files": ["existing_file.csv"]}))
    await adapter.receive_trigger(TriggerMessage(payload="existing_file.csv"))

    assert collector.names == []
    assert codes(errors) == ["MissingDirectoryForRelativePath", "MissingDirectoryForRelativePath"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, code",
    [
        (None, "MissingPayload"),
        (42, "UnsupportedPayload"),
        ({"directory": "/data"}, "UnsupportedPayload"),
        ({"directory": "/data", "files": "existing_file.csv"}, "InvalidFilesField"),
    ],
)
async def test_bad_payloads_are_reported_not_raised(collector, errors, payload, code):
    adapter = InboundFileAdapter(collector, on_error=errors.append)
    message = TriggerMessage(payload=payload)

    emitted = await adapter.receive_trigger(message)

    assert emitted == []
    assert codes(errors) == [code]
    assert errors[0].trigger is message
    assert errors[0].endpoint == "trigger"


@pytest.mark.asyncio
async def test_directory_is_reported_as_stream_failure(collector, errors, fixtures_dir):
    adapter = InboundFileAdapter(collector, on_error=errors.append)

    await adapter.receive_trigger(TriggerMessage(payload=str(fixtures_dir)))

    assert collector.names == []
    assert codes(errors) == ["StatOrStreamFailure"]


@pytest.mark.asyncio
async def test_stat_failure_emits_nothing(collector, errors, fixtures_dir, monkeypatch):
    async def failing_stat(path, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(aiofiles.os, "stat", failing_stat)
    adapter = InboundFileAdapter(collector, on_error=errors.append)

    emitted = await adapter.receive_trigger(TriggerMessage(payload=str(fixtures_dir / "existing_file.csv")))

    assert emitted == []
    assert collector.names == []
    assert codes(errors) == ["StatOrStreamFailure"]


@pytest.mark.asyncio
async def test_header_and_hops_are_copied(collector, fixtures_dir):
    adapter = InboundFileAdapter(collector)
    message = TriggerMessage(
        payload=str(fixtures_dir / "existing_file.csv"),
        header={"job": "nightly"},
        hops=["scheduler"],
    )

    await adapter.receive_trigger(message)

    outbound = collector.messages[0]
    assert collector.origins == [message]
    assert outbound.header["job"] == "nightly"
    assert outbound.header["file_name"] == "existing_file.csv"
    assert outbound.header["directory"] == str(fixtures_dir)
    assert outbound.header["file_stat"] is outbound.file_stat
    assert outbound.hops == ["scheduler"]
    assert message.header == {"job": "nightly"}


@pytest.mark.asyncio
async def test_stream_is_readable_by_consumer(fixtures_dir):
    contents = []

    async def consumer(message, origin):
        contents.append(await message.payload.read())
        await message.payload.close()

    adapter = InboundFileAdapter(consumer)
    await adapter.receive_trigger(TriggerMessage(payload=str(fixtures_dir / "existing_file.csv")))

    assert contents == [(fixtures_dir / "existing_file.csv").read_bytes()]


@pytest.mark.asyncio
async def test_sync_consumer_is_supported(fixtures_dir):
    received = []

    def consumer(message, origin):
        received.append(message.file_name)

    adapter = InboundFileAdapter(consumer)
    emitted = await adapter.receive_trigger(TriggerMessage(payload=str(fixtures_dir / "existing_file.csv")))

    assert received == ["existing_file.csv"]
    for message in emitted:
        await message.payload.close()


@pytest.mark.asyncio
async def test_consumer_failure_does_not_block_siblings(tmp_path, errors):
    (tmp_path / "bad.csv").write_text("x")
    (tmp_path / "good.csv").write_text("y")
    delivered = []

    async def consumer(message, origin):
        await message.payload.close()
        if message.file_name == "bad.csv":
            raise RuntimeError("downstream exploded")
        delivered.append(message.file_name)

    adapter = InboundFileAdapter(consumer, on_error=errors.append)
    emitted = await adapter.receive_trigger(
        TriggerMessage(payload={"directory": str(tmp_path), "files": ["bad.csv", "good.csv"]})
    )

    assert delivered == ["good.csv"]
    assert [message.file_name for message in emitted] == ["good.csv"]
    assert errors == []


@pytest.mark.asyncio
async def test_request_scoped_error_callback(collector, errors, fixtures_dir):
    adapter = InboundFileAdapter(collector, on_error=errors.append)
    scoped = []

    await adapter.receive_trigger(TriggerMessage(payload=str(fixtures_dir / "gumbo.csv")), on_error=scoped.append)
    await adapter.receive_trigger(TriggerMessage(payload=None))

    assert codes(scoped) == ["FileNotFound"]
    assert codes(errors) == ["FileNotFound", "MissingPayload"]


@pytest.mark.asyncio
async def test_selector_does_not_gate_explicit_triggers(collector, fixtures_dir):
    adapter = InboundFileAdapter(collector, {"regex": r"^gum_"})

    await adapter.receive_trigger(TriggerMessage(payload=str(fixtures_dir / "existing_file.csv")))

    assert collector.names == ["existing_file.csv"]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_defaults(collector):
    adapter = InboundFileAdapter(collector)

    assert adapter.name == "file-ingest-inbound"
    assert adapter.state is ComponentState.CREATED
    assert adapter.config.root_directory is None
    assert adapter.config.replay_existing is False
    assert isinstance(adapter.config.selector, AcceptAll)


def test_camel_case_options(collector, tmp_path):
    adapter = InboundFileAdapter(
        collector,
        {
            "type": "adapter-inbound-file",
            "name": "myfileInbound",
            "watchDir": str(tmp_path),
            "onlyReadNewFiles": False,
            "regEx": r".*\.csv",
        },
    )

    assert adapter.name == "myfileInbound"
    assert adapter.type == "adapter-inbound-file"
    assert adapter.config.root_directory == tmp_path
    assert adapter.config.replay_existing is True
    assert isinstance(adapter.config.selector, Pattern)
    assert adapter.config.selector.regex.pattern == r".*\.csv"


def test_snake_case_options(collector, tmp_path):
    adapter = InboundFileAdapter(
        collector,
        {"watch_dir": tmp_path, "only_read_new_files": True, "filter": str.islower, "recursive": False},
    )

    assert adapter.config.replay_existing is False
    assert adapter.config.recursive is False
    assert isinstance(adapter.config.selector, CustomPredicate)


def test_only_name_given(collector):
    adapter = InboundFileAdapter(collector, {"name": "myfileInbound"})

    assert adapter.name == "myfileInbound"
    assert isinstance(adapter.config.selector, AcceptAll)


def test_filter_must_be_a_function(collector):
    with pytest.raises(ConfigurationError, match="Filter must be a function"):
        InboundFileAdapter(collector, {"regEx": r".*\.csv", "filter": "a"})


def test_invalid_regex(collector):
    with pytest.raises(ConfigurationError):
        InboundFileAdapter(collector, {"regEx": "(*"})


def test_invalid_option_type(collector):
    with pytest.raises(ConfigurationError, match="Invalid adapter options"):
        InboundFileAdapter(collector, {"onlyReadNewFiles": "sometimes"})


@pytest.mark.asyncio
async def test_configure_rejected_while_running(collector):
    adapter = InboundFileAdapter(collector)
    await adapter.start()

    with pytest.raises(ConfigurationError):
        adapter.configure({"regex": "x"})

    await adapter.stop()
    adapter.configure({"regex": "x"})
    assert isinstance(adapter.config.selector, Pattern)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_lifecycle_without_watch_dir(collector):
    adapter = InboundFileAdapter(collector)

    assert await adapter.start() is adapter
    assert adapter.state is ComponentState.RUNNING
    assert adapter.watcher is None

    await adapter.start()
    assert adapter.state is ComponentState.RUNNING

    await adapter.stop()
    assert adapter.state is ComponentState.STOPPED

    await adapter.start()
    assert adapter.state is ComponentState.RUNNING


@pytest.mark.asyncio
async def test_stop_before_start_is_noop(collector):
    adapter = InboundFileAdapter(collector)

    await adapter.stop()

    assert adapter.state is ComponentState.CREATED


@pytest.mark.asyncio
async def test_start_with_missing_watch_dir(collector, tmp_path):
    adapter = InboundFileAdapter(collector, {"watch_dir": tmp_path / "nope"})

    with pytest.raises(FileNotFoundError):
        await adapter.start()

    assert adapter.state is ComponentState.CREATED
    assert adapter.watcher is None


# ---------------------------------------------------------------------------
# Error channel robustness
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_nul_byte_reference_is_reported(collector, errors, fixtures_dir):
    adapter = InboundFileAdapter(collector, on_error=errors.append)

    emitted = await adapter.receive_trigger(
        TriggerMessage(payload=["/tmp/a\x00b.csv", str(fixtures_dir / "existing_file.csv")])
    )

    assert [message.file_name for message in emitted] == ["existing_file.csv"]
    assert codes(errors) == ["FileNotFound"]


@pytest.mark.asyncio
async def test_failing_error_callback_does_not_escape(collector, fixtures_dir):
    def broken_callback(error):
        raise RuntimeError("callback failed")

    adapter = InboundFileAdapter(collector, on_error=broken_callback)

    emitted = await adapter.receive_trigger(
        TriggerMessage(payload=["/nope/gumbo.csv", str(fixtures_dir / "existing_file.csv")]),
        on_error=broken_callback,
    )

    assert [message.file_name for message in emitted] == ["existing_file.csv"]
    assert collector.names == ["existing_file.csv"]


@pytest.mark.asyncio
async def test_async_error_callback_is_awaited(collector, fixtures_dir):
    received = []

    async def async_callback(error):
        await asyncio.sleep(0)
        received.append(error.code)

    adapter = InboundFileAdapter(collector, on_error=async_callback)

    await adapter.receive_trigger(TriggerMessage(payload=str(fixtures_dir / "gumbo.csv")))
    await adapter.receive_trigger(TriggerMessage(payload=None))

    assert received == ["FileNotFound", "MissingPayload"]
