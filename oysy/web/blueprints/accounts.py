"""
OySy Web - Accounts Blueprint

Routes: /accounts, /accounts/add, /accounts/<address>/delete,
        /accounts/<address>/primary, /accounts/refresh
"""

import logging

from flask import Blueprint, jsonify

from oysy.state.errors import AccountNotFound, ValidationError
from oysy.sync.watcher import reconcile_in_background
from oysy.web.helpers import as_bool, get_context, get_state, json_error, request_data
from oysy.web.security import csrf_required

logger = logging.getLogger(__name__)

accounts_bp = Blueprint('accounts_bp', __name__)


def _listing() -> dict:
    state = get_state()
    return {
        'accounts': [a.to_dict() for a in state.registry.accounts()],
        'configured': state.account_configured,
        'sum_of_balances': state.sum_of_balances,
        'last_updated': state.last_balance_updated(),
    }


@accounts_bp.route('/accounts', endpoint='accounts')
def list_accounts():
    return jsonify(_listing())


@accounts_bp.route('/accounts/add', methods=['POST'], endpoint='accounts-add')
@csrf_required
def add_account():
    data = request_data()
    try:
        account = get_state().add_account(
            data.get('address', ''),
            data.get('label', ''),
            is_primary=as_bool(data.get('is_primary', False)),
        )
    except ValidationError as e:
        return json_error(str(e), 400, field=e.field)
    return jsonify(account.to_dict()), 201


@accounts_bp.route('/accounts/<address>/delete', methods=['POST'], endpoint='accounts-delete')
@csrf_required
def delete_account(address):
    try:
        get_state().delete_account(address)
    except AccountNotFound as e:
        return json_error(str(e), 404)
    return jsonify(_listing())


@accounts_bp.route('/accounts/<address>/primary', methods=['POST'], endpoint='accounts-primary')
@csrf_required
def set_primary(address):
    try:
        get_state().set_primary_account(address)
    except AccountNotFound as e:
        return json_error(str(e), 404)
    return jsonify(_listing())


@accounts_bp.route('/accounts/refresh', methods=['POST'], endpoint='accounts-refresh')
@csrf_required
def refresh():
    """Start a reconciliation pass; results arrive through /api/notices"""
    ctx = get_context()
    silent = as_bool(request_data().get('silent', False))
    reconcile_in_background(ctx.engine, ctx.state, silent=silent)
    return jsonify({'status': 'started', 'silent': silent}), 202
