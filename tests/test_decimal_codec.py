"""Tests for the scaled-decimal codec."""

import base64
from decimal import Decimal

import pytest
from bson.decimal128 import Decimal128

from product_sink import decimal_codec
from product_sink.exceptions import DecodeError


@pytest.mark.parametrize(
    "unscaled_bytes, scale, expected",
    [
        (b"\x01\xf4", 2, "5.00"),
        (b"\x01\xf4", 0, "500"),
        (b"\xff", 1, "-0.1"),
        (b"\xfe\x0c", 3, "-0.500"),
        (b"\x00", 4, "0.0000"),
        ((12345678901234567890123456789012345).to_bytes(15, "big", signed=True), 20,
         "123456789012345.67890123456789012345"),
    ],
)
def test_to_exact_decimal(unscaled_bytes, scale, expected):
    assert str(decimal_codec.to_exact_decimal(unscaled_bytes, scale)) == expected


def test_exact_even_past_default_context_precision():
    # 40 significant digits; the default decimal context only keeps 28
    unscaled = 10 ** 39 + 7
    raw = unscaled.to_bytes(17, "big", signed=True)
    value = decimal_codec.to_exact_decimal(raw, 39)
    assert value == Decimal("1." + "0" * 38 + "7")


def test_unsigned_reading():
    assert decimal_codec.to_exact_decimal(b"\xff", 0, signed=False) == Decimal(255)
    assert decimal_codec.to_exact_decimal(b"\xff", 0, signed=True) == Decimal(-1)


def test_decode_returns_decimal128():
    result = decimal_codec.decode(b"\x01\xf4", 2)
    assert isinstance(result, Decimal128)
    assert str(result.to_decimal()) == "5.00"


def test_decode_absent_is_none():
    assert decimal_codec.decode(None, 2) is None


@pytest.mark.parametrize(
    "unscaled, scale",
    [
        (10 ** 40 + 1, 0),  # 41 significant digits
        (1, 7000),          # below the smallest Decimal128 exponent
        (1, -7000),         # above the largest Decimal128 exponent
    ],
)
def test_decode_unrepresentable_is_dropped(unscaled, scale, caplog):
    raw = unscaled.to_bytes((unscaled.bit_length() // 8) + 1, "big", signed=True)
    assert decimal_codec.decode(raw, scale) is None
    assert "weight" in caplog.text


def test_decode_keeps_trailing_zero_values_that_fit():
    # 1 followed by 40 zeros rounds without losing anything
    raw = (10 ** 40).to_bytes(17, "big", signed=True)
    result = decimal_codec.decode(raw, 0)
    assert result is not None
    assert result.to_decimal() == Decimal(10 ** 40)


def test_decode_weight_wire_form():
    weight, dropped = decimal_codec.decode_weight({"scale": 2, "value": "AfQ="})
    assert weight == Decimal128("5.00")
    assert dropped is False


def test_decode_weight_null():
    assert decimal_codec.decode_weight(None) == (None, False)


def test_decode_weight_dropped_flag():
    raw = (10 ** 40 + 1).to_bytes(17, "big", signed=True)
    encoded = base64.b64encode(raw).decode()
    assert decimal_codec.decode_weight({"scale": 0, "value": encoded}) == (None, True)


@pytest.mark.parametrize(
    "raw",
    [
        "5.00",
        {"scale": "2", "value": "AfQ="},
        {"scale": True, "value": "AfQ="},
        {"scale": 2},
        {"scale": 2, "value": 500},
        {"scale": 2, "value": "not base64!"},
    ],
)
def test_decode_weight_malformed(raw):
    with pytest.raises(DecodeError):
        decimal_codec.decode_weight(raw)


@pytest.mark.parametrize("text", ["5.00", "-0.001", "0", "123456789.123456789", "1E+3", "-128", "128"])
def test_encode_inverts_decode(text):
    unscaled_bytes, scale = decimal_codec.encode(Decimal(text))
    assert decimal_codec.to_exact_decimal(unscaled_bytes, scale) == Decimal(text)


def test_encode_weight_matches_debezium():
    assert decimal_codec.encode_weight(Decimal("5.00")) == {"scale": 2, "value": "AfQ="}
    assert decimal_codec.encode_weight(None) is None
