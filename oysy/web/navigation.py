"""
OySy Web - Navigation Guard Hooks

Every request is a navigation attempt. The endpoint's last dotted segment
is the route name in the policy table; the guard decides whether the
request proceeds or is redirected.
"""

import logging

from flask import Flask, g, redirect, request

from oysy.web.helpers import get_context, json_error, referrer_path

logger = logging.getLogger(__name__)


def _route_name(endpoint: str) -> str:
    return endpoint.rsplit('.', 1)[-1]


def _full_path() -> str:
    # werkzeug appends '?' even without a query string
    return request.full_path[:-1] if request.full_path.endswith('?') else request.full_path


def guard_request():
    """before_request: run the guard chain"""
    guard = get_context().guard
    guard.indicator.start()
    g.guard_redirected = False

    if request.endpoint is None:
        # No route matched; the 404 handler takes over
        return None

    result = guard.navigate(_route_name(request.endpoint), _full_path(), from_path=referrer_path())
    if result.allowed:
        return None
    g.guard_redirected = True
    return redirect(result.redirect_to)


def handle_not_found(error):
    """Unmatched paths become a not-found redirect home"""
    if request.endpoint is not None:
        # A matched route answered 404 itself
        return json_error(getattr(error, 'description', None) or 'Not found', 404)
    result = get_context().guard.navigate_unmatched(_full_path())
    g.guard_redirected = True
    return redirect(result.redirect_to)


def finish_navigation(response):
    """after_request: redirects are cleaned up by the guard's timer"""
    if not g.get('guard_redirected', False):
        get_context().guard.indicator.done()
    return response


def init_navigation(app: Flask):
    app.before_request(guard_request)
    app.register_error_handler(404, handle_not_found)
    app.after_request(finish_navigation)
