"""
QR code rendering for payment URIs.
"""

import io

import qrcode
from qrcode.image.pil import PilImage


def _build(data: str, border: int, box_size: int = 10) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr


def payment_qr_ascii(data: str, border: int = 1) -> str:
    """Terminal QR code, two characters per module"""
    qr = _build(data, border, box_size=1)
    lines = []
    for row in qr.get_matrix():
        lines.append(''.join('██' if cell else '  ' for cell in row))
    return '\n'.join(lines)


def payment_qr_png(data: str, border: int = 2) -> bytes:
    img = _build(data, border).make_image(
        image_factory=PilImage, fill_color="black", back_color="white"
    )
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()
