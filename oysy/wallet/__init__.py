"""
oysy.wallet - Payment URIs and QR codes.

Re-exports the public API from submodules.
"""

from oysy.wallet.uri import URIError, InvalidURI, InvalidAmount, decode_uri, encode_uri, parse_amount
from oysy.wallet.qr import payment_qr_ascii, payment_qr_png

__all__ = [
    "URIError",
    "InvalidURI",
    "InvalidAmount",
    "decode_uri",
    "encode_uri",
    "parse_amount",
    "payment_qr_ascii",
    "payment_qr_png",
]
