"""
Access control decisions for navigation attempts.

evaluate() is a pure function of the route policy, the session and the
offline flag. The offline check always runs first, so a page that cannot be
shown offline redirects home even for a visitor who would otherwise be sent
to the login screen.
"""

from dataclasses import dataclass
from typing import Optional, Union

from oysy.access.policy import AccessPolicy
from oysy.state.session import Session

REASON_OFFLINE = "offline-unavailable"
REASON_UNAUTHORIZED = "unauthorized"
REASON_FORBIDDEN = "forbidden"
REASON_NOT_FOUND = "not-found"


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class RedirectLogin:
    """Send the visitor to the login screen, then back to preserve_target"""
    preserve_target: str
    reason: str = REASON_UNAUTHORIZED


@dataclass(frozen=True)
class RedirectHome:
    reason: str


@dataclass(frozen=True)
class RedirectNotFound:
    reason: str = REASON_NOT_FOUND


@dataclass(frozen=True)
class RedirectBack:
    """Logged-in visitor opened the login screen: return where they came from"""
    target: str
    reason: Optional[str] = None


Decision = Union[Allow, RedirectLogin, RedirectHome, RedirectNotFound, RedirectBack]


def evaluate(route: Optional[AccessPolicy], session: Session, offline: bool,
             full_path: str = "/", from_path: str = "/") -> Decision:
    """
    Decide whether a navigation to `route` may proceed.

    Args:
        route: Policy of the target, None if the route is not in the table
        session: Current session
        offline: Process-wide connectivity flag
        full_path: Path (with query) of the attempted navigation
        from_path: Path the navigation started from
    """
    if offline and (route is None or not route.offline_accessible):
        return RedirectHome(reason=REASON_OFFLINE)

    if route is None:
        return RedirectNotFound()

    if route.guest_only and session.authenticated:
        back = from_path or "/"
        # Going back to the guest-only page itself would redirect forever
        if back.split("?", 1)[0] in route.paths:
            back = "/"
        return RedirectBack(target=back)

    if route.requires_auth and not session.authenticated:
        return RedirectLogin(preserve_target=full_path)

    if route.required_role and session.role != route.required_role:
        if not session.authenticated:
            return RedirectLogin(preserve_target=full_path)
        return RedirectHome(reason=REASON_FORBIDDEN)

    return Allow()


def evaluate_unmatched() -> Decision:
    """Catch-all for paths that match no route, regardless of auth or connectivity"""
    return RedirectNotFound()
