"""
OySy Web - Security Hardening

CSRF protection for state-changing requests, and security headers.
"""

import hmac
import logging
import secrets
from functools import wraps

from flask import request, session

from oysy.web.helpers import json_error

logger = logging.getLogger(__name__)

CSRF_SESSION_KEY = '_csrf_token'
CSRF_FORM_FIELD = '_csrf_token'
CSRF_HEADER = 'X-CSRF-Token'


def _constant_time_compare(a: str, b: str) -> bool:
    """Constant-time string comparison to prevent timing attacks"""
    return hmac.compare_digest(a.encode(), b.encode())


# =========================================================================
#                         CSRF PROTECTION
# =========================================================================

def generate_csrf_token() -> str:
    """Generate a CSRF token for the session"""
    if CSRF_SESSION_KEY not in session:
        session[CSRF_SESSION_KEY] = secrets.token_hex(32)
    return session[CSRF_SESSION_KEY]


def rotate_csrf_token() -> str:
    """New session and token, e.g. after login"""
    session.clear()
    session[CSRF_SESSION_KEY] = secrets.token_hex(32)
    return session[CSRF_SESSION_KEY]


def _submitted_token() -> str:
    # Form posts carry a field, the JSON client sends a header
    token = request.headers.get(CSRF_HEADER) or request.form.get(CSRF_FORM_FIELD)
    if not token and request.is_json:
        body = request.get_json(silent=True)
        if isinstance(body, dict):
            token = body.get(CSRF_FORM_FIELD)
    return token if isinstance(token, str) else ''


def _validate_csrf() -> bool:
    """Validate the CSRF token sent with the request"""
    token = _submitted_token()
    session_token = session.get(CSRF_SESSION_KEY, '')
    if not session_token or not token:
        return False
    return _constant_time_compare(token, session_token)


def csrf_required(f):
    """Decorator to require valid CSRF token on POST"""
    @wraps(f)
    def decorated(*args, **kwargs):
        if request.method == 'POST' and not _validate_csrf():
            logger.warning("Rejected %s %s: CSRF validation failed (origin %s)",
                           request.method, request.path, request.headers.get('Origin', '-'))
            return json_error('Security validation failed. Please try again.', 403)
        return f(*args, **kwargs)
    return decorated


# =========================================================================
#                         HEADERS
# =========================================================================

def add_security_headers(response):
    """Add security headers to every response"""
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"
    response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
    response.headers["Content-Security-Policy"] = "default-src 'self'; img-src 'self' data:; form-action 'self'; frame-ancestors 'none'"
    if response.mimetype == "application/json":
        response.headers["Cache-Control"] = "no-store"
    return response
