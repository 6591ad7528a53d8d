"""
OySy Web - Settings Blueprint

Routes: /settings, /settings/update
"""

from flask import Blueprint, jsonify

from oysy.config import Config
from oysy.web.helpers import as_bool, get_state, request_data
from oysy.web.security import csrf_required

settings_bp = Blueprint('settings_bp', __name__)


def _settings() -> dict:
    state = get_state()
    return {
        'settings': state.settings.to_dict(),
        'language': state.language,
        'preferred_url': state.preferred_url() or Config.GATEWAY_URL,
        'ledger_rpc_url': Config.LEDGER_RPC_URL,
        'tor_enabled': Config.TOR_ENABLED,
        'refresh_interval': Config.REFRESH_INTERVAL,
    }


@settings_bp.route('/settings')
def settings():
    return jsonify(_settings())


@settings_bp.route('/settings/update', methods=['POST'], endpoint='settings-update')
@csrf_required
def update_settings():
    state = get_state()
    data = request_data()

    if 'show_advanced_options' in data:
        state.set_advanced_options_shown(as_bool(data['show_advanced_options']))
    if 'use_custom_host' in data:
        state.set_custom_host_used(as_bool(data['use_custom_host']))
    if 'custom_url' in data:
        state.set_custom_url(data['custom_url'])
    if 'language' in data:
        state.update_language(data['language'])

    return jsonify(_settings())
