# tests/conftest.py
import os
import sys
from pathlib import Path

import httpx
import pytest

# add repo root to sys.path so tests can import "src" package
repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from src.locate import LocationListener, NominatimClient


class RecordingListener(LocationListener):
    """Collects every notification in call order."""
    def __init__(self):
        self.events = []

    def on_position_change(self, position, address):
        self.events.append(("position", position, address))

    def on_address_change(self, address):
        self.events.append(("address", address))

    def on_error(self, notice):
        self.events.append(("error", notice))

    def on_notice(self, notice):
        self.events.append(("notice", notice))

    def of(self, kind):
        return [e for e in self.events if e[0] == kind]


class SleepRecorder:
    """Stands in for asyncio.sleep in the retry loop; records delays without waiting."""
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def make_client(handler, **kwargs):
    """NominatimClient backed by an httpx.MockTransport running ``handler``."""
    sleep = kwargs.pop("sleep", None) or SleepRecorder()
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = NominatimClient(
        base_url="https://nominatim.test",
        user_agent="campus-locator-tests/1.0",
        http_client=http,
        sleep=sleep,
        **kwargs,
    )
    return client, sleep


@pytest.fixture
def listener():
    return RecordingListener()
