"""
oysy.access - Route policies, access decisions and the navigation guard.

Re-exports the public API from submodules.
"""

from oysy.access.policy import (
    HOME_ROUTE,
    LOGIN_ROUTE,
    PAGE_ROUTES,
    ROUTES,
    AccessPolicy,
    PolicyTable,
)
from oysy.access.evaluator import (
    REASON_FORBIDDEN,
    REASON_NOT_FOUND,
    REASON_OFFLINE,
    REASON_UNAUTHORIZED,
    Allow,
    RedirectBack,
    RedirectHome,
    RedirectLogin,
    RedirectNotFound,
    evaluate,
    evaluate_unmatched,
)
from oysy.access.guard import (
    LoadingIndicator,
    NavigationGuardChain,
    NavigationResult,
    schedule_once,
)

__all__ = [
    "HOME_ROUTE",
    "LOGIN_ROUTE",
    "PAGE_ROUTES",
    "ROUTES",
    "AccessPolicy",
    "PolicyTable",
    "REASON_FORBIDDEN",
    "REASON_NOT_FOUND",
    "REASON_OFFLINE",
    "REASON_UNAUTHORIZED",
    "Allow",
    "RedirectBack",
    "RedirectHome",
    "RedirectLogin",
    "RedirectNotFound",
    "evaluate",
    "evaluate_unmatched",
    "LoadingIndicator",
    "NavigationGuardChain",
    "NavigationResult",
    "schedule_once",
]
