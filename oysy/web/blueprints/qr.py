"""
OySy Web - QR Code Blueprint

Routes: /qr
"""

import io

from flask import Blueprint, request, send_file

from oysy.wallet.qr import payment_qr_png
from oysy.wallet.uri import URIError, encode_uri
from oysy.web.helpers import json_error

qr_bp = Blueprint('qr_bp', __name__)


@qr_bp.route('/qr')
def qr():
    """
    PNG QR code of a payment URI.

    Either ?data=<text> (encoded as is) or ?address=...[&amount=...&message=...]
    (built into a payment URI).
    """
    data = request.args.get('data', '')
    if not data:
        address = request.args.get('address', '').strip()
        if not address:
            return json_error('address or data is required', 400)
        options = {k: v for k, v in request.args.items() if k != 'address'}
        try:
            data = encode_uri(address, options)
        except URIError as e:
            return json_error(str(e), 400)

    return send_file(io.BytesIO(payment_qr_png(data)), mimetype='image/png')
