"""
OySy Web - Authentication Blueprint

The client does not check credentials itself: the login form hands over the
token issued by the account service, and the session is derived from it.

Routes: /login, /logout
"""

from flask import Blueprint, jsonify, redirect, request

from oysy.web.helpers import get_state, json_error, request_data, safe_target
from oysy.web.security import csrf_required, generate_csrf_token, rotate_csrf_token

auth_bp = Blueprint('auth_bp', __name__)


@auth_bp.route('/login', methods=['GET', 'POST'])
@csrf_required
def login():
    target = safe_target(request.args.get('redirect'))
    if request.method == 'GET':
        return jsonify({'page': 'login', 'redirect': target, 'csrf_token': generate_csrf_token()})

    data = request_data()
    token = (data.get('token') or '').strip()
    if not token:
        return json_error('A token is required', 400, field='token')

    get_state().login(token)
    # Regenerate session to prevent fixation
    rotate_csrf_token()
    return redirect(safe_target(data.get('redirect'), default=target))


@auth_bp.route('/logout', methods=['POST'])
@csrf_required
def logout():
    get_state().logout()
    rotate_csrf_token()
    return redirect('/')
