import asyncio
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class Collector:
    """Downstream consumer that records messages and closes their streams."""

    def __init__(self):
        self.messages = []
        self.origins = []

    async def __call__(self, message, origin=None):
        self.messages.append(message)
        self.origins.append(origin)
        await message.payload.close()

    @property
    def names(self):
        return sorted(message.file_name for message in self.messages)


async def wait_for(condition, timeout: float = 5.0, interval: float = 0.05):
    """Poll ``condition`` until it is true or ``timeout`` expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def collector() -> Collector:
    return Collector()


@pytest.fixture
def errors() -> list:
    return []


@pytest.fixture(name="wait_for")
def wait_for_fixture():
    return wait_for
