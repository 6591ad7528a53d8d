"""
Process-wide application state.

AppState is created once at startup (restored from a KeyedStore when one is
given) and changed only through its named commands. Every command that
touches a persisted key writes that key through to the store.

Persisted keys: config (accounts), auth (token), settings, language,
paymentRequests. Connectivity and the active view are runtime-only.
"""

import logging
import threading
from datetime import datetime
from typing import List, Optional

from oysy.config import Config
from oysy.state.registry import Account, AccountRegistry
from oysy.state.session import Session
from oysy.state.store import KeyedStore

logger = logging.getLogger(__name__)

ACCOUNTS_VIEW = "accounts"


class Settings:
    """User-editable client settings"""

    def __init__(self):
        self.show_advanced_options: bool = False
        self.use_custom_host: bool = False
        self.custom_url: str = Config.GATEWAY_URL

    def to_dict(self) -> dict:
        return {
            "show_advanced_options": self.show_advanced_options,
            "use_custom_host": self.use_custom_host,
            "custom_url": self.custom_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        settings = cls()
        for key, value in data.items():
            if hasattr(settings, key):
                setattr(settings, key, value)
        return settings


class ViewState:
    """Which view the user is looking at, and whether the client is visible"""

    def __init__(self):
        self.active_view: Optional[str] = None
        self.visible: bool = True

    def focus(self, view: str):
        self.active_view = view
        self.visible = True

    def showing(self, view: str) -> bool:
        return self.visible and self.active_view == view


def format_date_and_time(moment: datetime) -> str:
    """e.g. '7 March 2024, 14:05:09'"""
    return f"{moment.day} {moment.strftime('%B')} {moment.year}, {moment.strftime('%H:%M:%S')}"


class AppState:
    """Explicit client state, mutated only through named commands"""

    def __init__(self, store: Optional[KeyedStore] = None, offline: bool = False):
        self.store = store
        self.registry = AccountRegistry(on_change=self._persist_registry)
        self.session = Session.anonymous()
        self.settings = Settings()
        self.language: Optional[str] = None
        self.payment_requests: List[dict] = []
        self.offline = bool(offline)
        self.view = ViewState()
        self._lock = threading.RLock()

    @classmethod
    def restore(cls, store: KeyedStore, offline: bool = False) -> "AppState":
        """Rebuild the state saved in `store`"""
        data = store.load()
        state = cls(store=store, offline=offline)
        state.registry = AccountRegistry.from_dict(
            data.get("config") or {}, on_change=state._persist_registry
        )
        state.session = Session.from_dict(data.get("auth") or {})
        state.settings = Settings.from_dict(data.get("settings") or {})
        state.language = data.get("language")
        state.payment_requests = list(data.get("paymentRequests") or [])
        return state

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, key: str, value):
        if self.store is not None:
            self.store.save(key, value)

    def _persist_registry(self, registry: AccountRegistry):
        self._persist("config", registry.to_dict())

    # ------------------------------------------------------------------
    # Account commands
    # ------------------------------------------------------------------

    def add_account(self, address: str, label: str, is_primary: bool = False) -> Account:
        return self.registry.add(address, label, is_primary=is_primary)

    def delete_account(self, address: str) -> Account:
        return self.registry.delete(address)

    def set_primary_account(self, address: str) -> Account:
        return self.registry.set_primary(address)

    # ------------------------------------------------------------------
    # Session commands
    # ------------------------------------------------------------------

    def login(self, token: str) -> Session:
        if not token:
            raise ValueError("A token is required to log in")
        session = Session(token=token)
        with self._lock:
            self.session = session
            self._persist("auth", session.to_dict())
        logger.info("Logged in (role=%s)", session.role)
        return session

    def logout(self):
        with self._lock:
            self.session = Session.anonymous()
            self._persist("auth", self.session.to_dict())

    # ------------------------------------------------------------------
    # Settings, language, connectivity, requests
    # ------------------------------------------------------------------

    def update_language(self, language: Optional[str]):
        with self._lock:
            self.language = language or None
            self._persist("language", self.language)

    def set_offline(self, offline: bool):
        offline = bool(offline)
        if offline != self.offline:
            logger.info("Connectivity changed: %s", "offline" if offline else "online")
        self.offline = offline

    def set_advanced_options_shown(self, shown: bool):
        with self._lock:
            self.settings.show_advanced_options = bool(shown)
            self._persist("settings", self.settings.to_dict())

    def set_custom_host_used(self, used: bool):
        with self._lock:
            self.settings.use_custom_host = bool(used)
            self._persist("settings", self.settings.to_dict())

    def set_custom_url(self, url: str):
        with self._lock:
            self.settings.custom_url = (url or "").strip() or Config.GATEWAY_URL
            self._persist("settings", self.settings.to_dict())

    def add_payment_request(self, request: dict):
        """Remember a decoded payment URI ({address, options})"""
        if not request.get("address"):
            raise ValueError("Payment request without address")
        with self._lock:
            self.payment_requests.append(
                {"address": request["address"], "options": dict(request.get("options") or {})}
            )
            self._persist("paymentRequests", self.payment_requests)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def account_configured(self) -> bool:
        return len(self.registry) > 0

    @property
    def sum_of_balances(self):
        return self.registry.sum_of_balances()

    def last_balance_updated(self) -> Optional[str]:
        if self.registry.last_updated is None:
            return None
        return format_date_and_time(self.registry.last_updated)

    def preferred_url(self) -> Optional[str]:
        """Gateway URL chosen by the user, or None for the default"""
        if self.settings.use_custom_host and self.settings.custom_url:
            return self.settings.custom_url
        return None

    def focus_accounts(self):
        self.view.focus(ACCOUNTS_VIEW)
