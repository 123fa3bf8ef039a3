"""
scaled decimal 코덱

Debezium은 DECIMAL/NUMERIC 컬럼을 {"scale": 2, "value": "AfQ="} 형태로 보낸다.
value = unscaled 정수(big-endian, two's complement)의 base64, 실제 값 = unscaled * 10^-scale.
float를 거치면 정밀도가 깨지므로 Decimal tuple로 바로 만든다.
"""
import base64
import binascii
import decimal
import logging
from decimal import Decimal
from typing import Any, Optional, Tuple

from bson.decimal128 import Decimal128

from .exceptions import DecodeError

logger = logging.getLogger(__name__)


def to_exact_decimal(unscaled_bytes: bytes, scale: int, signed: bool = True) -> Decimal:
    """bytes + scale -> 정확한 Decimal (context 정밀도 영향 없음)"""
    unscaled = int.from_bytes(unscaled_bytes, byteorder="big", signed=signed)
    sign, digits, _ = Decimal(unscaled).as_tuple()
    return Decimal((sign, digits, -scale))


def decode(unscaled_bytes: Optional[bytes], scale: int, signed: bool = True) -> Optional[Decimal128]:
    """
    unscaled bytes + scale -> Decimal128

    - 입력 None => None (weight 미기록, 에러 아님)
    - Decimal128로 정확히 표현 불가(34자리 초과, 지수 범위 초과) => None
      optional 필드라 메시지 자체는 계속 적재한다
    """
    if unscaled_bytes is None:
        return None

    value = to_exact_decimal(unscaled_bytes, scale, signed=signed)
    try:
        return Decimal128(value)
    except decimal.DecimalException as e:
        # TODO: 이 fallback이 의도인지 producer 쪽과 확인되면 DecodeError로 올릴지 결정
        logger.warning("Decimal128 표현 불가, weight 버림: value=%s scale=%s (%s)", value, scale, type(e).__name__)
        return None


def decode_weight(raw: Any, signed: bool = True) -> Tuple[Optional[Decimal128], bool]:
    """
    wire 형태 {"scale": int, "value": base64} -> (Decimal128 | None, dropped)

    dropped=True 는 값이 있었는데 표현 불가로 버린 경우.
    구조가 깨진 건 DecodeError (스키마 문제라 숨기면 안 됨).
    """
    if raw is None:
        return None, False

    if not isinstance(raw, dict):
        raise DecodeError(f"weight must be an object, got {type(raw).__name__}")

    scale = raw.get("scale")
    encoded = raw.get("value")
    if isinstance(scale, bool) or not isinstance(scale, int):
        raise DecodeError(f"weight.scale must be an integer, got {scale!r}")
    if not isinstance(encoded, str):
        raise DecodeError(f"weight.value must be a base64 string, got {encoded!r}")

    try:
        unscaled_bytes = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"weight.value is not valid base64: {encoded!r}") from e

    result = decode(unscaled_bytes, scale, signed=signed)
    return result, result is None


def encode(value: Decimal) -> Tuple[bytes, int]:
    """Decimal -> (two's complement bytes, scale). producer/테스트용 역변환"""
    sign, digits, exponent = value.as_tuple()
    if not isinstance(exponent, int):
        raise ValueError(f"cannot encode non-finite decimal {value}")

    unscaled = int(Decimal((sign, digits, 0)))
    scale = -exponent
    if scale < 0:
        # 1E+3 같은 양수 지수는 scale 0으로 펼친다
        unscaled *= 10 ** (-scale)
        scale = 0

    length = (unscaled + (unscaled < 0)).bit_length() // 8 + 1
    return unscaled.to_bytes(length, byteorder="big", signed=True), scale


def encode_weight(value: Optional[Decimal]) -> Optional[dict]:
    """Decimal -> Debezium wire 형태"""
    if value is None:
        return None
    unscaled_bytes, scale = encode(value)
    return {"scale": scale, "value": base64.b64encode(unscaled_bytes).decode("ascii")}
