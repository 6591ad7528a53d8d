"""
Tests for payment URI decoding/encoding and QR rendering.
"""

import pytest

from oysy.wallet.qr import payment_qr_ascii, payment_qr_png
from oysy.wallet.uri import InvalidAmount, InvalidURI, URIError, decode_uri, encode_uri


def test_decode_plain_address():
    assert decode_uri("bazo:abc123") == {"address": "abc123", "options": {}}


def test_decode_with_slashes_and_query():
    decoded = decode_uri("bazo://abc123?amount=5&message=rent%20march")
    assert decoded["address"] == "abc123"
    assert decoded["options"] == {"amount": 5, "message": "rent march"}
    assert isinstance(decoded["options"]["amount"], int)


def test_decode_fractional_amount():
    assert decode_uri("bazo:abc?amount=0.25")["options"]["amount"] == 0.25


def test_decode_last_value_wins_and_blank_kept():
    decoded = decode_uri("bazo:abc?label=one&label=two&note=")
    assert decoded["options"] == {"label": "two", "note": ""}


@pytest.mark.parametrize("text", [
    "",
    "bitcoin:abc",
    "bazo:",
    "bazo://",
    "bazo:?amount=1",
    "xbazo:abc",
])
def test_decode_invalid_uri(text):
    with pytest.raises(InvalidURI):
        decode_uri(text)


@pytest.mark.parametrize("amount", ["abc", "-1", "inf", "nan", ""])
def test_decode_invalid_amount(amount):
    with pytest.raises(InvalidAmount):
        decode_uri(f"bazo:abc?amount={amount}")


def test_errors_are_value_errors():
    assert issubclass(InvalidURI, URIError)
    assert issubclass(InvalidAmount, URIError)
    assert issubclass(URIError, ValueError)


def test_encode_without_options_has_no_question_mark():
    assert encode_uri("abc") == "bazo:abc"
    assert encode_uri("abc", {}) == "bazo:abc"


def test_encode_percent_encodes_values():
    assert encode_uri("abc", {"message": "a b&c"}) == "bazo:abc?message=a%20b%26c"


def test_encode_rejects_bad_amount():
    with pytest.raises(InvalidAmount):
        encode_uri("abc", {"amount": -3})
    with pytest.raises(InvalidAmount):
        encode_uri("abc", {"amount": float("inf")})
    with pytest.raises(InvalidAmount):
        encode_uri("abc", {"amount": "lots"})
    with pytest.raises(InvalidAmount):
        encode_uri("abc", {"amount": 10 ** 400})


@pytest.mark.parametrize("amount", [0, 1, 2.5, 1e-3, 123456789.125])
def test_round_trip_amounts(amount):
    decoded = decode_uri(encode_uri("abc", {"amount": amount, "message": "hi"}))
    assert decoded["address"] == "abc"
    assert decoded["options"]["amount"] == amount
    assert decoded["options"]["message"] == "hi"


def test_qr_ascii_is_square():
    lines = payment_qr_ascii(encode_uri("abc", {"amount": 1})).split("\n")
    assert len(lines) > 10
    assert all(len(line) == len(lines[0]) for line in lines)
    assert len(lines[0]) == 2 * len(lines)


def test_qr_png_bytes():
    data = payment_qr_png("bazo:abc")
    assert data.startswith(b"\x89PNG")
