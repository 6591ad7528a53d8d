"""
OySy Web - Application Factory

Creates the Flask application around one AppState: blueprints, the
navigation guard hooks, the CSRF session, security headers, and
(optionally) the background balance watcher.
"""

import logging

from flask import Flask

from oysy.config import Config
from oysy.access.guard import NavigationGuardChain
from oysy.access.policy import PolicyTable
from oysy.network.gateway import HttpGatewaySource
from oysy.network.ledger_rpc import LedgerRPCSource
from oysy.network.sources import build_session
from oysy.state.app_state import AppState
from oysy.state.store import KeyedStore
from oysy.sync.notify import DesktopNotifier, NoticeBoard
from oysy.sync.reconcile import ReconciliationEngine
from oysy.sync.watcher import BalanceWatcher
from oysy.web.helpers import EXTENSION_KEY, WebContext, get_or_create_secret
from oysy.web.security import add_security_headers
from oysy.web.navigation import init_navigation
from oysy.web.blueprints.pages import pages_bp
from oysy.web.blueprints.auth import auth_bp
from oysy.web.blueprints.accounts import accounts_bp
from oysy.web.blueprints.settings import settings_bp
from oysy.web.blueprints.qr import qr_bp
from oysy.web.blueprints.api import api_bp

logger = logging.getLogger(__name__)


def _check_policies(app: Flask, policies: PolicyTable):
    """Every endpoint must have an access policy"""
    missing = sorted({
        rule.endpoint for rule in app.url_map.iter_rules()
        if rule.endpoint.rsplit('.', 1)[-1] not in policies
    })
    if missing:
        raise RuntimeError(f"Endpoints without access policy: {', '.join(missing)}")


def create_app(state: AppState = None, engine: ReconciliationEngine = None,
               dispatcher=None, start_watcher: bool = False) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__, static_folder=None)
    app.secret_key = get_or_create_secret()
    app.config.update(
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Strict",
        SESSION_COOKIE_NAME="oysy_session",
    )

    if state is None:
        state = AppState.restore(KeyedStore(Config.store_path()), offline=Config.OFFLINE)
    if dispatcher is None:
        dispatcher = engine.dispatcher if engine is not None else NoticeBoard(system=DesktopNotifier())
    if engine is None:
        http = build_session()
        engine = ReconciliationEngine(
            state,
            ledger=LedgerRPCSource(session=http),
            gateway=HttpGatewaySource(session=http),
            dispatcher=dispatcher,
        )

    policies = PolicyTable()
    guard = NavigationGuardChain(policies, state, dispatcher)
    watcher = BalanceWatcher(engine, state)
    app.extensions[EXTENSION_KEY] = WebContext(state, engine, dispatcher, guard, policies, watcher)

    # ---- Register blueprints ----
    app.register_blueprint(pages_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(accounts_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(qr_bp)
    app.register_blueprint(api_bp)
    _check_policies(app, policies)

    # ---- Guard every request, then security headers on every response ----
    init_navigation(app)
    app.after_request(add_security_headers)

    if start_watcher:
        watcher.start()

    return app
