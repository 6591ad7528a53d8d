"""
Static access policy per route.

Every navigable route of the client is listed in ROUTES. The table is
compiled once into a PolicyTable keyed by route name; a name that is not in
the table is an explicit resolution failure, never a fallthrough.

Make sure every route has an entry: a route without one is only reachable
as "not found", and never while offline.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

from oysy.state.session import ROLE_ADMIN, ROLE_USER

HOME_ROUTE = "home"
LOGIN_ROUTE = "login"


@dataclass(frozen=True)
class AccessPolicy:
    """Access metadata of one named route"""

    name: str
    paths: Tuple[str, ...]
    requires_auth: bool = False
    required_role: Optional[str] = None
    offline_accessible: bool = False
    # Only for visitors who are not logged in (the login screen)
    guest_only: bool = False
    # Whether an allowed navigation here becomes the active view (False for actions and polling)
    view: bool = True

    @property
    def path(self) -> str:
        return self.paths[0]


def _route(name, *paths, **flags) -> AccessPolicy:
    return AccessPolicy(name=name, paths=tuple(paths), **flags)


ROUTES: Tuple[AccessPolicy, ...] = (
    # ---- Public pages ----
    _route("home", "/", offline_accessible=True),
    _route("hello", "/hello", offline_accessible=True),
    _route("forex", "/forex"),
    _route("registration", "/registration"),
    _route("password-forgotten", "/password-forgotten"),
    _route("password-forgotten-verification",
           "/password-forgotten-verification",
           "/password-forgotten-verification/<email>",
           "/password-forgotten-verification/<email>/<token>"),
    _route("activation", "/activation", "/activation/<email>", "/activation/<email>/<token>"),
    _route(LOGIN_ROUTE, "/login", guest_only=True),
    _route("logout", "/logout", offline_accessible=True, view=False),

    # ---- Authenticated pages ----
    _route("profile", "/auth/profile", requires_auth=True),
    _route("authenticated", "/auth/authenticated", requires_auth=True),
    _route("user-authenticated", "/auth/user/authenticated",
           requires_auth=True, required_role=ROLE_USER),

    # ---- Admin pages ----
    _route("admin-events", "/auth/admin/events",
           requires_auth=True, required_role=ROLE_ADMIN),
    _route("admin-server-balance", "/auth/admin/server-balance",
           requires_auth=True, required_role=ROLE_ADMIN),
    _route("admin-accounts", "/auth/admin/accounts",
           requires_auth=True, required_role=ROLE_ADMIN),
    _route("admin-accounts-detail", "/auth/admin/accounts-detail/<publicKeyClient>",
           requires_auth=True, required_role=ROLE_ADMIN),
    _route("admin-user-accounts", "/auth/admin/user-accounts",
           requires_auth=True, required_role=ROLE_ADMIN),
    _route("admin-user-accounts-detail", "/auth/admin/user-accounts-detail/<email>",
           requires_auth=True, required_role=ROLE_ADMIN),

    # ---- Local wallet (tracked accounts live on this device) ----
    _route("accounts", "/accounts", offline_accessible=True),
    _route("accounts-add", "/accounts/add", offline_accessible=True, view=False),
    _route("accounts-delete", "/accounts/<address>/delete", offline_accessible=True, view=False),
    _route("accounts-primary", "/accounts/<address>/primary", offline_accessible=True, view=False),
    _route("accounts-refresh", "/accounts/refresh", view=False),
    _route("settings", "/settings", offline_accessible=True),
    _route("settings-update", "/settings/update", offline_accessible=True, view=False),
    _route("qr", "/qr", offline_accessible=True, view=False),
    _route("payment-requests", "/payment-requests", offline_accessible=True),

    # ---- Client plumbing ----
    _route("connectivity", "/api/connectivity", offline_accessible=True, view=False),
    _route("notices", "/api/notices", offline_accessible=True, view=False),
    _route("status", "/api/status", offline_accessible=True, view=False),
)

# Routes rendered by the generic page view (everything else has its own view)
PAGE_ROUTES = (
    "home", "hello", "forex", "registration", "password-forgotten",
    "password-forgotten-verification", "activation",
    "profile", "authenticated", "user-authenticated",
    "admin-events", "admin-server-balance", "admin-accounts",
    "admin-accounts-detail", "admin-user-accounts", "admin-user-accounts-detail",
)


class PolicyTable:
    """Route name -> AccessPolicy, built once"""

    def __init__(self, routes: Iterable[AccessPolicy] = ROUTES):
        table: Dict[str, AccessPolicy] = {}
        for policy in routes:
            if policy.name in table:
                raise ValueError(f"Duplicate route name: {policy.name}")
            if not policy.paths:
                raise ValueError(f"Route {policy.name} has no path")
            table[policy.name] = policy
        self._table = table

    def resolve(self, name: Optional[str]) -> Optional[AccessPolicy]:
        """Exact-name lookup; None when the route is unknown"""
        if name is None:
            return None
        return self._table.get(name)

    def __contains__(self, name):
        return name in self._table

    def __iter__(self) -> Iterator[AccessPolicy]:
        return iter(self._table.values())

    def __len__(self):
        return len(self._table)
