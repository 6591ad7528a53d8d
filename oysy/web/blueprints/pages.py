"""
OySy Web - Pages Blueprint

Content pages of the client, registered straight from the route table.
Each answers with the page name, its URL parameters and a summary of the
wallet so the front end can render it.

Routes: /, /hello, /forex, /registration, /password-forgotten[...],
        /activation[...], /auth/profile, /auth/authenticated,
        /auth/user/authenticated, /auth/admin/*
"""

from flask import Blueprint, jsonify

from oysy.access.policy import PAGE_ROUTES, PolicyTable
from oysy.config import Config
from oysy.web.helpers import get_state
from oysy.web.security import generate_csrf_token

pages_bp = Blueprint('pages_bp', __name__)


def _summary() -> dict:
    state = get_state()
    primary = state.registry.primary()
    return {
        'configured': state.account_configured,
        'primary': primary.to_dict() if primary else None,
        'sum_of_balances': state.sum_of_balances,
        'last_updated': state.last_balance_updated(),
    }


def _page_view(name: str):
    def view(**params):
        state = get_state()
        return jsonify({
            'title': Config.APP_TITLE,
            'page': name,
            'params': params,
            'session': state.session.to_dict(include_token=False),
            'offline': state.offline,
            'wallet': _summary(),
            'csrf_token': generate_csrf_token(),
        })
    view.__name__ = f"page_{name.replace('-', '_')}"
    return view


def register_pages(blueprint: Blueprint, table: PolicyTable):
    for name in PAGE_ROUTES:
        view = _page_view(name)
        for path in table.resolve(name).paths:
            blueprint.add_url_rule(path, endpoint=name, view_func=view)


register_pages(pages_bp, PolicyTable())
