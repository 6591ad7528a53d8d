"""
Tests for sessions, the keyed store and AppState commands.
"""

import json
import base64
from datetime import datetime

import pytest

from oysy.config import Config
from oysy.state.app_state import AppState, format_date_and_time
from oysy.state.session import ROLE_ADMIN, ROLE_USER, Session, role_from_token
from oysy.state.store import KeyedStore, MemoryStore


def make_token(claims):
    """Unsigned JWT carrying `claims`"""
    def part(obj):
        return base64.urlsafe_b64encode(json.dumps(obj).encode()).decode().rstrip("=")
    return f"{part({'alg': 'none'})}.{part(claims)}.sig"


# =========================================================================
# Session
# =========================================================================

def test_role_from_token_claims():
    assert role_from_token(make_token({"role": ROLE_ADMIN})) == ROLE_ADMIN
    assert role_from_token(make_token({"roles": [ROLE_USER]})) == ROLE_USER
    assert role_from_token(make_token({"authorities": [{"authority": ROLE_ADMIN}]})) == ROLE_ADMIN


def test_role_from_unreadable_token_is_none():
    assert role_from_token("not-a-jwt") is None
    assert role_from_token("a.!!!.c") is None
    assert role_from_token(None) is None


def test_session_authenticated_iff_token():
    assert not Session.anonymous().authenticated
    session = Session(token="opaque")
    assert session.authenticated
    assert session.role is None


def test_session_from_dict_rederives_role():
    token = make_token({"role": ROLE_USER})
    session = Session.from_dict({"token": token, "role": ROLE_ADMIN})
    assert session.role == ROLE_USER


# =========================================================================
# Stores
# =========================================================================

def test_keyed_store_write_through(tmp_path):
    path = tmp_path / "store.json"
    store = KeyedStore(path)
    store.save("language", "de")
    store.save("auth", {"token": None})
    assert json.loads(path.read_text()) == {"language": "de", "auth": {"token": None}}
    assert oct(path.stat().st_mode & 0o777) == oct(0o600)


def test_keyed_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json")
    assert KeyedStore(path).load() == {}


def test_memory_store_copies_values():
    store = MemoryStore()
    value = {"a": [1]}
    store.save("k", value)
    value["a"].append(2)
    assert store.get("k") == {"a": [1]}


# =========================================================================
# AppState
# =========================================================================

def test_state_restore_round_trip(tmp_path):
    store = KeyedStore(tmp_path / "store.json")
    state = AppState(store=store)
    state.add_account("addr-1", "Main")
    state.add_account("addr-2", "Savings", is_primary=True)
    state.registry.set_balance("addr-1", 3)
    state.login(make_token({"role": ROLE_ADMIN}))
    state.update_language("de")
    state.set_custom_host_used(True)
    state.set_custom_url("https://gw.example/api")
    state.add_payment_request({"address": "addr-9", "options": {"amount": 2}})

    restored = AppState.restore(store)
    assert restored.registry.addresses() == ["addr-1", "addr-2"]
    assert restored.registry.primary().address == "addr-2"
    assert restored.registry.balance_of("addr-1") == 3
    assert restored.session.authenticated
    assert restored.session.role == ROLE_ADMIN
    assert restored.language == "de"
    assert restored.preferred_url() == "https://gw.example/api"
    assert restored.payment_requests == [{"address": "addr-9", "options": {"amount": 2}}]


def test_offline_is_not_persisted(store):
    state = AppState(store=store)
    state.set_offline(True)
    assert "offline" not in store.load()
    assert AppState.restore(store).offline is False


def test_login_requires_token(state):
    with pytest.raises(ValueError):
        state.login("")
    assert not state.session.authenticated


def test_logout_clears_token_and_role(state, store):
    state.login(make_token({"role": ROLE_USER}))
    state.logout()
    assert not state.session.authenticated
    assert state.session.role is None
    assert store.get("auth") == {"authenticated": False, "role": None, "token": None}


def test_preferred_url_only_with_custom_host(state):
    state.set_custom_url("https://gw.example/api")
    assert state.preferred_url() is None
    state.set_custom_host_used(True)
    assert state.preferred_url() == "https://gw.example/api"
    state.set_custom_url("  ")
    assert state.settings.custom_url == Config.GATEWAY_URL


def test_payment_request_needs_address(state):
    with pytest.raises(ValueError):
        state.add_payment_request({"options": {}})


def test_derived_values(state):
    assert not state.account_configured
    assert state.last_balance_updated() is None
    state.add_account("a", "A")
    state.registry.set_balance("a", 4)
    state.registry.touch_updated_timestamp()
    assert state.account_configured
    assert state.sum_of_balances == 4
    assert state.last_balance_updated() is not None


def test_format_date_and_time():
    moment = datetime(2024, 3, 7, 14, 5, 9)
    assert format_date_and_time(moment) == "7 March 2024, 14:05:09"


def test_focus_accounts(state):
    state.view.visible = False
    state.focus_accounts()
    assert state.view.showing("accounts")
