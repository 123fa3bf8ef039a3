import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .decimal_codec import decode_weight
from .exceptions import DecodeError
from .models import Change, DeleteProduct, Product, UpsertProduct

REQUIRED_TEXT_FIELDS = ("name", "weight_uom_id", "unit_uom_id")
ID_MIN = -(2 ** 63)
ID_MAX = 2 ** 63 - 1


# -----------------------------------------------------------------------------
# 파싱 유틸
# -----------------------------------------------------------------------------
def _parse_dt(value: Any, field_name: str) -> datetime:
    """
    Debezium 타임스탬프(ISO8601 문자열) -> tz-aware datetime
    - 'Z'는 +00:00으로 변환
    - 소수점 이하 자릿수는 제각각 (.12Z 처럼 끝의 0은 잘려서 온다)
    - tz 없는 값은 UTC로 간주
    - 없거나 이상하면 DecodeError (현재 시각으로 채우지 않는다)
    """
    if not isinstance(value, str) or not value.strip():
        raise DecodeError(f"{field_name} must be an ISO-8601 timestamp, got {value!r}")

    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as e:
        raise DecodeError(f"{field_name} is not a valid timestamp: {value!r}") from e
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _parse_id(value: Any, where: str) -> int:
    # bool은 int 서브클래스라 따로 막는다
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"{where}.id must be an integer, got {value!r}")
    # 원본 컬럼은 bigint, BSON도 8바이트 정수까지만
    if not ID_MIN <= value <= ID_MAX:
        raise DecodeError(f"{where}.id out of int64 range: {value!r}")
    return value


def _load_json(blob: bytes, what: str) -> Dict[str, Any]:
    try:
        text = blob.decode("utf-8") if isinstance(blob, (bytes, bytearray)) else blob
        data = json.loads(text)
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"{what} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(f"{what} must be a JSON object, got {type(data).__name__}")

    # JsonConverter schemas.enable=true => {"schema": ..., "payload": ...}
    if "schema" in data and "payload" in data:
        data = data["payload"]
        if not isinstance(data, dict):
            raise DecodeError(f"{what}.payload must be a JSON object")
    return data


# -----------------------------------------------------------------------------
# 엔티티 디코딩
# -----------------------------------------------------------------------------
def decode_product(raw: Any, signed_weight: bool = True) -> Product:
    """after/before 이미지 dict -> Product"""
    if not isinstance(raw, dict):
        raise DecodeError(f"product image must be an object, got {type(raw).__name__}")

    missing = [k for k in ("id",) + REQUIRED_TEXT_FIELDS + ("created_at", "updated_at") if k not in raw]
    if missing:
        raise DecodeError(f"product image missing required fields: {', '.join(missing)}")

    for name in REQUIRED_TEXT_FIELDS:
        if not isinstance(raw[name], str):
            raise DecodeError(f"{name} must be a string, got {raw[name]!r}")

    description = raw.get("description")
    if description is not None and not isinstance(description, str):
        raise DecodeError(f"description must be a string or null, got {description!r}")

    weight, dropped = decode_weight(raw.get("weight"), signed=signed_weight)

    return Product(
        id=_parse_id(raw["id"], "product"),
        name=raw["name"],
        weight=weight,
        weight_uom_id=raw["weight_uom_id"],
        unit_uom_id=raw["unit_uom_id"],
        description=description,
        created_at=_parse_dt(raw["created_at"], "created_at"),
        updated_at=_parse_dt(raw["updated_at"], "updated_at"),
        weight_dropped=dropped,
    )


# -----------------------------------------------------------------------------
# 메시지 디코딩
# -----------------------------------------------------------------------------
def decode_message(key: Optional[bytes], value: Optional[bytes], signed_weight: bool = True) -> Change:
    """
    Kafka (key, value) -> DeleteProduct | UpsertProduct

    1) value가 비었으면 tombstone => key {"id": ...}로 삭제
    2) after가 null이면 삭제 => before.id
    3) after가 있으면 upsert (before 유무와 무관)
    """
    if not value:
        if not key:
            raise DecodeError("tombstone without key")
        key_data = _load_json(key, "key")
        if "id" not in key_data:
            raise DecodeError("key missing required field: id")
        return DeleteProduct(product_id=_parse_id(key_data["id"], "key"))

    envelope = _load_json(value, "value")
    after = envelope.get("after")
    if after is not None:
        return UpsertProduct(product=decode_product(after, signed_weight=signed_weight))

    before = envelope.get("before")
    if before is None:
        raise DecodeError("change event has neither before nor after image")
    if not isinstance(before, dict) or "id" not in before:
        raise DecodeError("before image missing required field: id")
    return DeleteProduct(product_id=_parse_id(before["id"], "before"))
