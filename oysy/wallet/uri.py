"""
Payment request URIs.

    bazo:<address>[?key=value&...]
    bazo://<address>[?key=value&...]

`amount` is the only interpreted option: it must be a finite, non-negative
number. Other options are carried through as strings.
"""

import math
import re
from typing import Optional
from urllib.parse import parse_qsl, quote, urlencode

from oysy.config import Config


class URIError(ValueError):
    pass


class InvalidURI(URIError):
    def __init__(self, uri: str):
        super().__init__(f"Invalid URI: {uri}")
        self.uri = uri


class InvalidAmount(URIError):
    def __init__(self, amount):
        super().__init__(f"Invalid amount: {amount!r}")
        self.amount = amount


def _uri_pattern(scheme: str):
    return re.compile(re.escape(scheme) + r":/?/?([^/?][^?]*)(?:\?(.*))?", re.DOTALL)


URI_RE = _uri_pattern(Config.URI_SCHEME)


def parse_amount(value):
    """Amount as int (integral) or float; raises InvalidAmount"""
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(value)
    if isinstance(value, (int, float, str)):
        try:
            number = float(value.strip() if isinstance(value, str) else value)
        except (ValueError, OverflowError):
            raise InvalidAmount(value) from None
    else:
        raise InvalidAmount(value)

    if not math.isfinite(number) or number < 0:
        raise InvalidAmount(value)
    if isinstance(value, int):
        return value
    return int(number) if number.is_integer() else number


def decode_uri(text: str) -> dict:
    """
    Parse a payment URI.

    Returns {"address": str, "options": dict}. Repeated query keys keep the
    last value.
    """
    match = URI_RE.fullmatch(text or "")
    if not match:
        raise InvalidURI(text)

    address, query = match.group(1), match.group(2)
    options = dict(parse_qsl(query or "", keep_blank_values=True))
    if "amount" in options:
        options["amount"] = parse_amount(options["amount"])
    return {"address": address, "options": options}


def _option_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_uri(address: str, options: Optional[dict] = None) -> str:
    """Build a payment URI; the inverse of decode_uri()"""
    options = dict(options or {})
    if "amount" in options:
        options["amount"] = parse_amount(options["amount"])

    query = urlencode([(k, _option_text(v)) for k, v in options.items()], quote_via=quote)
    uri = f"{Config.URI_SCHEME}:{address}"
    return f"{uri}?{query}" if query else uri
