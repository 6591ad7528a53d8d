import sys
import asyncio
from pathlib import Path

import pytest

# Add project root so `import oysy` works in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from oysy.config import Config
from oysy.network.sources import BalanceResult, SourceError
from oysy.state.app_state import AppState
from oysy.state.store import MemoryStore
from oysy.sync.notify import NoticeBoard
from oysy.sync.reconcile import ReconciliationEngine


class FakeSource:
    """
    Balance source answering from a dict.

    A value that is an exception instance is raised instead of returned.
    `delays` holds per-address sleeps (seconds) to control completion order.
    """

    def __init__(self, name, balances=None, delays=None, base_url=None):
        self.name = name
        self.balances = dict(balances or {})
        self.delays = dict(delays or {})
        self.base_url = base_url
        self.calls = []
        self.urls = []

    def for_url(self, base_url):
        self.urls.append(base_url)
        return self

    async def fetch_balance(self, address):
        self.calls.append(address)
        # The answer is fixed when the query starts, like a real request
        value = self.balances.get(address, SourceError(self.name, address, "no such account"))
        delay = self.delays.get(address, 0)
        if delay:
            await asyncio.sleep(delay)
        if isinstance(value, Exception):
            raise value
        return BalanceResult(address, value)


class RecordingDispatcher:
    """Keeps every event and system notification it is given"""

    def __init__(self, supports=False):
        self.supports = supports
        self.events = []
        self.system = []

    def emit(self, kind, message, duration_ms):
        self.events.append((kind, message, duration_ms))

    def kinds(self):
        return [kind for kind, _, _ in self.events]

    def supports_system_notifications(self):
        return self.supports

    def system_notify(self, title, body, on_activate=None):
        self.system.append((title, body, on_activate))


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Never touch the real ~/.oysy"""
    monkeypatch.setattr(Config, "DATA_DIR", tmp_path / "oysy")
    monkeypatch.setattr(Config, "OFFLINE", False)
    monkeypatch.setattr(Config, "TOR_ENABLED", False)
    monkeypatch.setattr(Config, "SYSTEM_NOTIFICATIONS", False)
    return tmp_path / "oysy"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def state(store):
    return AppState(store=store)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def ledger():
    return FakeSource("ledger")


@pytest.fixture
def gateway():
    return FakeSource("gateway")


@pytest.fixture
def engine(state, ledger, gateway, dispatcher):
    return ReconciliationEngine(state, ledger=ledger, gateway=gateway, dispatcher=dispatcher)


@pytest.fixture
def notice_board():
    return NoticeBoard()


@pytest.fixture
def app(state, ledger, gateway, notice_board):
    from oysy.web import create_app

    engine = ReconciliationEngine(state, ledger=ledger, gateway=gateway, dispatcher=notice_board)
    app = create_app(state=state, engine=engine, dispatcher=notice_board)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def csrf(client):
    """Headers carrying the CSRF token of the client's session"""
    token = client.get("/api/status").get_json()["csrf_token"]
    return {"X-CSRF-Token": token}
