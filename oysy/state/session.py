"""
Authentication session.

A Session is replaced as a whole on login and logout so the token, the role
derived from it and the authenticated flag always change together.
"""

import json
import base64
import binascii
from typing import Optional

ROLE_ADMIN = "ROLE_ADMIN"
ROLE_USER = "ROLE_USER"


def _jwt_claims(token: str) -> Optional[dict]:
    """Decode the payload segment of a JWT without verifying it"""
    parts = token.split('.')
    if len(parts) != 3:
        return None
    payload = parts[1]
    payload += '=' * (-len(payload) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload.encode()).decode())
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
        return None
    return claims if isinstance(claims, dict) else None


def role_from_token(token: Optional[str]) -> Optional[str]:
    """
    Read the role claim carried by a token.

    Looks at `role`, then the first entry of `roles` or `authorities`
    (plain strings or {"authority": ...} objects). Returns None when the
    token carries no readable role.
    """
    if not token:
        return None
    claims = _jwt_claims(token)
    if not claims:
        return None

    role = claims.get('role')
    if isinstance(role, str) and role:
        return role

    for key in ('roles', 'authorities'):
        entries = claims.get(key)
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if isinstance(entry, dict):
                entry = entry.get('authority')
            if isinstance(entry, str) and entry:
                return entry
    return None


class Session:
    """Current authentication state"""

    def __init__(self, token: Optional[str] = None):
        self.token: Optional[str] = token or None
        self.authenticated: bool = self.token is not None
        self.role: Optional[str] = role_from_token(self.token)

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    def to_dict(self, include_token: bool = True) -> dict:
        data = {
            "authenticated": self.authenticated,
            "role": self.role,
        }
        if include_token:
            data["token"] = self.token
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        # The role is always re-derived from the stored token
        return cls(token=data.get("token"))

    def __repr__(self):
        return f"<Session authenticated={self.authenticated} role={self.role}>"
