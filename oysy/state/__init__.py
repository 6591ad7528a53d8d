"""
oysy.state - Client state: accounts, session, settings, persistence.

Re-exports the public API from submodules.
"""

from oysy.state.errors import ValidationError, AccountNotFound
from oysy.state.registry import (
    BALANCE_UNCONFIRMED,
    BALANCE_UNKNOWN,
    BALANCE_ERROR,
    Account,
    AccountRegistry,
    normalize_balance,
)
from oysy.state.session import ROLE_ADMIN, ROLE_USER, Session, role_from_token
from oysy.state.store import KeyedStore, MemoryStore
from oysy.state.app_state import ACCOUNTS_VIEW, AppState, Settings, ViewState

__all__ = [
    "ValidationError",
    "AccountNotFound",
    "BALANCE_UNCONFIRMED",
    "BALANCE_UNKNOWN",
    "BALANCE_ERROR",
    "Account",
    "AccountRegistry",
    "normalize_balance",
    "ROLE_ADMIN",
    "ROLE_USER",
    "Session",
    "role_from_token",
    "KeyedStore",
    "MemoryStore",
    "ACCOUNTS_VIEW",
    "AppState",
    "Settings",
    "ViewState",
]
