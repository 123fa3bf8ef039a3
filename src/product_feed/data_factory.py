import json
import random
from datetime import datetime, timezone
from decimal import Decimal

from faker import Faker

from product_sink.decimal_codec import encode_weight

fake = Faker('ko_KR')

# ---------------------------------------------------------
# 1. 상품 카탈로그 (weight는 scale이 제각각이어야 코덱 검증이 된다)
# ---------------------------------------------------------
PRODUCT_CATALOG = [
    {"name": "제주 삼다수 2L x 6개입",     "weight": Decimal("12.000"), "weight_uom_id": "kg", "unit_uom_id": "pack"},
    {"name": "신라면 멀티팩 (5개입)",       "weight": Decimal("0.60"),   "weight_uom_id": "kg", "unit_uom_id": "pack"},
    {"name": "햇반 210g x 12개입",          "weight": Decimal("2520"),   "weight_uom_id": "g",  "unit_uom_id": "box"},
    {"name": "서울우유 1L",                 "weight": Decimal("1.03"),   "weight_uom_id": "kg", "unit_uom_id": "ea"},
    {"name": "맥북 프로 16인치 M3",         "weight": Decimal("2.14"),   "weight_uom_id": "kg", "unit_uom_id": "ea"},
    {"name": "로지텍 MX Master 3S 마우스",  "weight": Decimal("141"),    "weight_uom_id": "g",  "unit_uom_id": "ea"},
    {"name": "데이터 엔지니어링 교과서",     "weight": Decimal("0.850"),  "weight_uom_id": "kg", "unit_uom_id": "ea"},
    {"name": "요가 매트 (10mm)",            "weight": Decimal("1.2"),    "weight_uom_id": "kg", "unit_uom_id": "ea"},
    {"name": "디지털 상품권 5만원",          "weight": None,              "weight_uom_id": "kg", "unit_uom_id": "ea"},
]


def _iso(dt: datetime) -> str:
    """Debezium ZonedTimestamp 형태 (UTC, Z)"""
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def build_product_row(product_id=None, item=None, created_at=None, updated_at=None):
    """product 테이블 한 행 (wire 형태, weight는 base64 scaled decimal)"""
    item = item if item else random.choice(PRODUCT_CATALOG)
    created = created_at or fake.date_time_this_year(tzinfo=timezone.utc)
    updated = updated_at or created

    return {
        "id": product_id if product_id is not None else random.randint(1, 100000),
        "name": item["name"],
        "weight": encode_weight(item["weight"]),
        "weight_uom_id": item["weight_uom_id"],
        "unit_uom_id": item["unit_uom_id"],
        "description": fake.sentence(),
        "created_at": _iso(created),
        "updated_at": _iso(updated),
    }


# ---------------------------------------------------------
# 2. 변경 이벤트 (Debezium envelope)
# ---------------------------------------------------------
def _envelope(before, after, op):
    return {
        "before": before,
        "after": after,
        "source": {"connector": "postgresql", "name": "DBTestServer", "schema": "public", "table": "product"},
        "op": op,
        "ts_ms": int(datetime.now(timezone.utc).timestamp() * 1000),
    }


def build_create_event(row):
    return _envelope(None, row, "c")


def build_update_event(before, **changes):
    """before 행에 changes를 덮어쓴 after 이미지 생성. updated_at은 자동 갱신"""
    after = dict(before)
    after.update(changes)
    if "updated_at" not in changes:
        after["updated_at"] = _iso(datetime.now(timezone.utc))
    return _envelope(before, after, "u")


def build_delete_event(before):
    return _envelope(before, None, "d")


def build_key(product_id):
    return {"id": product_id}


def to_bytes(obj):
    """dict -> Kafka key/value bytes. None은 tombstone"""
    if obj is None:
        return None
    return json.dumps(obj, ensure_ascii=False).encode("utf-8")
