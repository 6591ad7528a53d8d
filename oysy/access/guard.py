"""
Navigation guard chain.

Runs every navigation attempt through the access evaluator and applies the
decision: allowed navigations proceed, redirects cancel the attempt, name a
new target, announce the reason, and schedule a one-shot task that clears
the loading indicator. The indicator would otherwise stay on when the
redirect target is the route that is already current.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlencode, quote

from oysy.config import Config
from oysy.access.policy import HOME_ROUTE, LOGIN_ROUTE, PolicyTable
from oysy.access.evaluator import (
    REASON_FORBIDDEN, REASON_NOT_FOUND, REASON_OFFLINE, REASON_UNAUTHORIZED,
    Allow, Decision, RedirectBack, RedirectHome, RedirectLogin, RedirectNotFound,
    evaluate, evaluate_unmatched,
)

logger = logging.getLogger(__name__)

NOTICE_MESSAGES = {
    REASON_OFFLINE: "This page is not available in offline mode.",
    REASON_UNAUTHORIZED: "Please log in to access this page.",
    REASON_FORBIDDEN: "You are not allowed to access this page.",
    REASON_NOT_FOUND: "Page not found.",
}


class LoadingIndicator:
    """Navigation progress flag shared by the guard and the UI layer"""

    def __init__(self):
        self._lock = threading.Lock()
        self._pending = 0

    @property
    def active(self) -> bool:
        return self._pending > 0

    def start(self):
        with self._lock:
            self._pending += 1

    def done(self, force: bool = False):
        """Finish one navigation, or all of them with force. Never goes below zero."""
        with self._lock:
            self._pending = 0 if force else max(0, self._pending - 1)


def schedule_once(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Run `callback` once after `delay` seconds on a daemon timer thread"""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


@dataclass(frozen=True)
class NavigationResult:
    decision: Decision
    route: Optional[str] = None
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return isinstance(self.decision, Allow)


class NavigationGuardChain:
    """Applies access decisions to navigation attempts"""

    def __init__(self, policies: PolicyTable, state, dispatcher=None,
                 indicator: Optional[LoadingIndicator] = None,
                 schedule: Callable[[float, Callable[[], None]], object] = schedule_once,
                 cleanup_delay: float = None):
        self.policies = policies
        self.state = state
        self.dispatcher = dispatcher
        self.indicator = indicator or LoadingIndicator()
        self.schedule = schedule
        self.cleanup_delay = Config.LOADING_CLEANUP_DELAY if cleanup_delay is None else cleanup_delay

    def navigate(self, route_name: Optional[str], full_path: str, from_path: str = "/") -> NavigationResult:
        """Evaluate and apply one navigation attempt to a named route"""
        policy = self.policies.resolve(route_name)
        decision = evaluate(
            policy, self.state.session, self.state.offline,
            full_path=full_path, from_path=from_path,
        )
        if isinstance(decision, Allow) and policy.view:
            self.state.view.active_view = route_name
        return self._apply(decision, route_name, full_path)

    def navigate_unmatched(self, full_path: str) -> NavigationResult:
        """Navigation to a path that matches no route"""
        return self._apply(evaluate_unmatched(), None, full_path)

    # ------------------------------------------------------------------

    def _apply(self, decision: Decision, route_name: Optional[str], full_path: str) -> NavigationResult:
        if isinstance(decision, Allow):
            return NavigationResult(decision, route=route_name)

        target = self._target(decision)
        logger.debug("Navigation to %s redirected to %s (%s)", full_path, target, decision)

        if decision.reason:
            duration = Config.NOT_FOUND_DURATION_MS if decision.reason == REASON_NOT_FOUND \
                else Config.NOTICE_DURATION_MS
            self._notify(decision.reason, duration)

        self.schedule(self.cleanup_delay, self._clear_indicator)
        return NavigationResult(decision, route=route_name, redirect_to=target)

    def _target(self, decision: Decision) -> str:
        home = self.policies.resolve(HOME_ROUTE).path
        if isinstance(decision, RedirectLogin):
            login = self.policies.resolve(LOGIN_ROUTE).path
            return f"{login}?{urlencode({'redirect': decision.preserve_target}, quote_via=quote)}"
        if isinstance(decision, RedirectBack):
            return decision.target
        if isinstance(decision, (RedirectHome, RedirectNotFound)):
            return home
        raise TypeError(f"Unhandled decision: {decision!r}")

    def _notify(self, reason: str, duration_ms: int):
        if self.dispatcher is None:
            return
        self.dispatcher.emit(reason, NOTICE_MESSAGES.get(reason, reason), duration_ms)

    def _clear_indicator(self):
        self.indicator.done(force=True)
