"""
OySy Web - Helper Functions

Access to the per-app wallet context, the session secret, request parsing
and JSON errors.
"""

import secrets
from typing import Optional
from urllib.parse import urlparse

from flask import current_app, jsonify, request

from oysy.config import Config
from oysy.state.app_state import AppState

EXTENSION_KEY = 'oysy'


# =========================================================================
#                         APP CONTEXT
# =========================================================================

class WebContext:
    """Everything a request handler needs, created once by create_app()"""

    def __init__(self, state: AppState, engine, dispatcher, guard, policies, watcher):
        self.state = state
        self.engine = engine
        self.dispatcher = dispatcher
        self.guard = guard
        self.policies = policies
        self.watcher = watcher


def get_context() -> WebContext:
    return current_app.extensions[EXTENSION_KEY]


def get_state() -> AppState:
    return get_context().state


def get_or_create_secret() -> str:
    """Get or create the Flask secret key"""
    path = Config.web_secret_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        return path.read_text().strip()
    secret = secrets.token_hex(32)
    path.write_text(secret)
    path.chmod(0o600)
    return secret


# =========================================================================
#                         REQUEST HELPERS
# =========================================================================

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def request_data() -> dict:
    """JSON body or form fields, whichever the client sent"""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


def as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def referrer_path() -> str:
    """Path of the referring page when it is on this host, else '/'"""
    referrer = request.referrer
    if not referrer:
        return '/'
    parsed = urlparse(referrer)
    if parsed.netloc and parsed.netloc != request.host:
        return '/'
    path = parsed.path or '/'
    return f"{path}?{parsed.query}" if parsed.query else path


def safe_target(target: Optional[str], default: str = '/') -> str:
    """Only local absolute paths are followed after login"""
    if not target or not target.startswith('/') or target.startswith('//'):
        return default
    if urlparse(target).netloc:
        return default
    return target


def json_error(message: str, status: int = 400, **extra):
    body = {'error': message}
    body.update(extra)
    return jsonify(body), status

