"""
Tests for the Flask web layer (guard hooks, blueprints).
"""

import time
from urllib.parse import urlparse

import pytest
from flask import Blueprint

from oysy.web import _check_policies

from test_state import make_token


def location(response):
    parsed = urlparse(response.headers["Location"])
    return f"{parsed.path}?{parsed.query}" if parsed.query else parsed.path


def test_home_is_public(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_json()
    assert body["page"] == "home"
    assert body["wallet"]["configured"] is False


def test_page_params(client):
    body = client.get("/activation/me@example.com/t0k").get_json()
    assert body["page"] == "activation"
    assert body["params"] == {"email": "me@example.com", "token": "t0k"}


def test_protected_page_redirects_to_login(client, notice_board):
    response = client.get("/auth/profile")
    assert response.status_code == 302
    assert location(response) == "/login?redirect=%2Fauth%2Fprofile"
    assert [n["kind"] for n in notice_board.peek()] == ["unauthorized"]


def test_login_then_follow_redirect(client, state, csrf):
    token = make_token({"role": "ROLE_USER"})
    response = client.post("/login?redirect=/auth/profile", data={"token": token}, headers=csrf)
    assert response.status_code == 302
    assert location(response) == "/auth/profile"
    assert state.session.authenticated

    assert client.get("/auth/profile").status_code == 200
    assert client.get("/auth/user/authenticated").status_code == 200
    assert location(client.get("/auth/admin/events")) == "/"


def test_login_rejects_external_redirect(client, csrf):
    token = make_token({"role": "ROLE_USER"})
    response = client.post("/login", data={"token": token, "redirect": "//evil.example/x"}, headers=csrf)
    assert location(response) == "/"


def test_login_without_token(client, csrf):
    response = client.post("/login", data={}, headers=csrf)
    assert response.status_code == 400
    assert response.get_json()["field"] == "token"


def test_login_page_sends_authenticated_user_back(client, state):
    state.login(make_token({"role": "ROLE_USER"}))
    response = client.get("/login", headers={"Referer": "http://localhost/settings"})
    assert location(response) == "/settings"


def test_login_page_from_login_page_goes_home(client, state):
    state.login(make_token({"role": "ROLE_USER"}))
    response = client.get("/login", headers={"Referer": "http://localhost/login"})
    assert response.status_code == 302
    assert location(response) == "/"
    response = client.get("/login?redirect=%2Fsettings",
                          headers={"Referer": "http://localhost/login?redirect=%2Fsettings"})
    assert location(response) == "/"


def test_logout(client, state, csrf):
    state.login("opaque")
    response = client.post("/logout", headers=csrf)
    assert location(response) == "/"
    assert not state.session.authenticated


def test_unknown_path_redirects_home_with_notice(client, notice_board):
    response = client.get("/definitely/not/here")
    assert response.status_code == 302
    assert location(response) == "/"
    notices = notice_board.peek()
    assert notices[-1]["kind"] == "not-found"
    assert notices[-1]["duration_ms"] == 8000


def test_offline_blocks_online_only_pages(client, state):
    state.set_offline(True)
    assert location(client.get("/forex")) == "/"
    assert client.get("/accounts").status_code == 200
    assert location(client.post("/accounts/refresh")) == "/"


def test_connectivity_endpoint(client, state, csrf):
    response = client.post("/api/connectivity", json={"offline": True}, headers=csrf)
    assert response.get_json() == {"offline": True}
    assert state.offline
    # Still reachable offline, so the client can come back online
    client.post("/api/connectivity", json={"offline": False}, headers=csrf)
    assert not state.offline
    assert client.post("/api/connectivity", json={}, headers=csrf).status_code == 400


def test_account_management(client, state, csrf):
    response = client.post("/accounts/add", json={"address": "addr-1", "label": "Main"}, headers=csrf)
    assert response.status_code == 201
    assert response.get_json()["is_primary"] is True

    client.post("/accounts/add", data={"address": "addr-2", "label": "Savings", "is_primary": "on"}, headers=csrf)
    assert state.registry.primary().address == "addr-2"

    dup = client.post("/accounts/add", json={"address": "addr-1", "label": "Again"}, headers=csrf)
    assert dup.status_code == 400
    assert dup.get_json()["field"] == "address"

    body = client.post("/accounts/addr-1/primary", headers=csrf).get_json()
    assert [a["address"] for a in body["accounts"] if a["is_primary"]] == ["addr-1"]

    body = client.post("/accounts/addr-1/delete", headers=csrf).get_json()
    assert [a["address"] for a in body["accounts"]] == ["addr-2"]
    assert client.post("/accounts/nope/delete", headers=csrf).status_code == 404


def test_refresh_runs_in_background(client, state, gateway, notice_board, csrf):
    state.add_account("addr-1", "Main")
    gateway.balances = {"addr-1": 12}
    response = client.post("/accounts/refresh", headers=csrf)
    assert response.status_code == 202

    deadline = time.time() + 5
    while state.registry.balance_of("addr-1") != 12 and time.time() < deadline:
        time.sleep(0.01)
    assert state.registry.balance_of("addr-1") == 12

    while "query-complete" not in [n["kind"] for n in notice_board.peek()] and time.time() < deadline:
        time.sleep(0.01)
    kinds = [n["kind"] for n in client.get("/api/notices").get_json()["notices"]]
    assert "balances-changed" in kinds
    assert client.get("/api/notices").get_json()["notices"] == []


def test_accounts_view_is_tracked(client, state, csrf):
    client.get("/accounts")
    client.get("/api/status")
    assert state.view.active_view == "accounts"
    client.post("/api/status", json={"visible": False}, headers=csrf)
    assert state.view.visible is False


def test_status(client, state):
    state.add_account("addr-1", "Main")
    body = client.get("/api/status").get_json()
    assert body["accounts"] == 1
    assert body["configured"] is True
    assert body["offline"] is False
    assert "token" not in body["session"]


def test_settings_update(client, state, csrf):
    response = client.post("/settings/update", json={
        "use_custom_host": True,
        "custom_url": "https://gw.example/api",
        "language": "de",
    }, headers=csrf)
    body = response.get_json()
    assert body["preferred_url"] == "https://gw.example/api"
    assert state.language == "de"
    assert client.get("/settings").get_json()["settings"]["use_custom_host"] is True


def test_payment_requests(client, state, csrf):
    response = client.post("/payment-requests", json={"uri": "bazo:abc?amount=3"}, headers=csrf)
    assert response.status_code == 201
    assert state.payment_requests == [{"address": "abc", "options": {"amount": 3}}]

    bad = client.post("/payment-requests", json={"uri": "bazo:abc?amount=-1"}, headers=csrf)
    assert bad.status_code == 400
    assert client.get("/payment-requests").get_json()["payment_requests"][0]["address"] == "abc"


def test_qr_png(client):
    response = client.get("/qr?address=abc&amount=2")
    assert response.status_code == 200
    assert response.mimetype == "image/png"
    assert response.data.startswith(b"\x89PNG")
    assert client.get("/qr?address=abc&amount=x").status_code == 400
    assert client.get("/qr").status_code == 400


def test_security_headers(client):
    response = client.get("/")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_indicator_settles(app, client):
    guard = app.extensions["oysy"].guard
    client.get("/")
    client.get("/auth/profile")
    deadline = time.time() + 2
    while guard.indicator.active and time.time() < deadline:
        time.sleep(0.01)
    assert not guard.indicator.active


def test_every_endpoint_needs_a_policy(app):
    extra = Blueprint("extra_bp", __name__)

    @extra.route("/unlisted")
    def unlisted():
        return "x"

    app.register_blueprint(extra)
    with pytest.raises(RuntimeError, match="unlisted"):
        _check_policies(app, app.extensions["oysy"].policies)


# =========================================================================
# CSRF
# =========================================================================

def test_posts_without_csrf_token_are_rejected(client, state):
    state.add_account("a", "Main")
    foreign = {"Origin": "http://evil.example"}

    response = client.post("/accounts/a/delete", data={}, headers=foreign)
    assert response.status_code == 403
    assert "a" in state.registry

    assert client.post("/accounts/add", data={"address": "b", "label": "B"}, headers=foreign).status_code == 403
    assert "b" not in state.registry
    assert client.post("/api/connectivity", json={"offline": True}).status_code == 403
    assert not state.offline
    assert client.post("/settings/update", json={"language": "fr"}).status_code == 403
    assert state.language is None
    assert client.post("/logout").status_code == 403


def test_wrong_csrf_token_is_rejected(client, state, csrf):
    response = client.post("/accounts/add", json={"address": "a", "label": "Main"},
                           headers={"X-CSRF-Token": "0" * 64})
    assert response.status_code == 403
    assert "a" not in state.registry


def test_csrf_token_from_another_session_is_rejected(app, state, csrf):
    other = app.test_client()
    response = other.post("/accounts/add", json={"address": "a", "label": "Main"}, headers=csrf)
    assert response.status_code == 403
    assert "a" not in state.registry


def test_csrf_token_as_form_field_or_json_field(client, state, csrf):
    token = csrf["X-CSRF-Token"]
    response = client.post("/accounts/add", data={"address": "a", "label": "A", "_csrf_token": token})
    assert response.status_code == 201
    response = client.post("/accounts/add", json={"address": "b", "label": "B", "_csrf_token": token})
    assert response.status_code == 201


def test_login_rotates_csrf_token(client, csrf):
    client.post("/login", data={"token": make_token({"role": "ROLE_USER"})}, headers=csrf)
    fresh = client.get("/api/status").get_json()["csrf_token"]
    assert fresh != csrf["X-CSRF-Token"]
    stale = client.post("/accounts/add", json={"address": "a", "label": "A"}, headers=csrf)
    assert stale.status_code == 403


def test_logout_needs_post(client, state):
    state.login("opaque")
    assert client.get("/logout").status_code == 405
    assert state.session.authenticated


def test_pages_carry_csrf_token(client):
    token = client.get("/").get_json()["csrf_token"]
    assert token == client.get("/login").get_json()["csrf_token"]
    assert token == client.get("/api/status").get_json()["csrf_token"]
