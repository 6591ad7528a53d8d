"""
OySy Web - Client JSON API Blueprint

Endpoints polled or driven by the front end.

Routes: /api/connectivity, /api/notices, /api/status, /payment-requests
"""

from flask import Blueprint, jsonify, request

from oysy.wallet.uri import URIError, decode_uri
from oysy.web.helpers import as_bool, get_context, get_state, json_error, request_data
from oysy.web.security import csrf_required, generate_csrf_token

api_bp = Blueprint('api_bp', __name__)


@api_bp.route('/api/connectivity', methods=['GET', 'POST'], endpoint='connectivity')
@csrf_required
def connectivity():
    """Report or set the connectivity flag ({"offline": bool})"""
    state = get_state()
    if request.method == 'POST':
        data = request_data()
        if 'offline' not in data:
            return json_error('offline is required', 400, field='offline')
        state.set_offline(as_bool(data['offline']))
    return jsonify({'offline': state.offline})


@api_bp.route('/api/notices', endpoint='notices')
def notices():
    """Events since the last poll"""
    dispatcher = get_context().dispatcher
    drain = getattr(dispatcher, 'drain', None)
    return jsonify({'notices': drain() if drain else []})


@api_bp.route('/api/status', methods=['GET', 'POST'], endpoint='status')
@csrf_required
def status():
    """Client summary; POST {"visible": bool} reports window visibility"""
    ctx = get_context()
    state = ctx.state
    if request.method == 'POST':
        data = request_data()
        if 'visible' in data:
            state.view.visible = as_bool(data['visible'])

    return jsonify({
        'offline': state.offline,
        'session': state.session.to_dict(include_token=False),
        'configured': state.account_configured,
        'accounts': len(state.registry),
        'sum_of_balances': state.sum_of_balances,
        'last_updated': state.last_balance_updated(),
        'active_view': state.view.active_view,
        'visible': state.view.visible,
        'loading': ctx.guard.indicator.active,
        'watcher': bool(ctx.watcher and ctx.watcher.running),
        'csrf_token': generate_csrf_token(),
    })


@api_bp.route('/payment-requests', methods=['GET', 'POST'], endpoint='payment-requests')
@csrf_required
def payment_requests():
    """List received payment requests, or record one from a URI"""
    state = get_state()
    if request.method == 'POST':
        uri = (request_data().get('uri') or '').strip()
        try:
            decoded = decode_uri(uri)
        except URIError as e:
            return json_error(str(e), 400, field='uri')
        state.add_payment_request(decoded)
        return jsonify(decoded), 201
    return jsonify({'payment_requests': state.payment_requests})
