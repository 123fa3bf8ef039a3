from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from bson.decimal128 import Decimal128


# -----------------------------------------------------------------------------
# 엔티티
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Product:
    """product 테이블 한 행 (after/before 이미지). id가 유일한 식별자."""

    id: int
    name: str
    weight: Optional[Decimal128]
    weight_uom_id: str
    unit_uom_id: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime
    # 원본에는 weight가 있었는데 Decimal128로 표현이 안 돼서 버린 경우 True
    weight_dropped: bool = False

    def to_document_fields(self) -> Dict[str, Any]:
        """$set에 들어갈 필드 (_id 제외)"""
        return {
            "name": self.name,
            "weight": self.weight,
            "weight_uom_id": self.weight_uom_id,
            "unit_uom_id": self.unit_uom_id,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# -----------------------------------------------------------------------------
# 변경 지시 (decoder 출력)
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class DeleteProduct:
    product_id: int


@dataclass(frozen=True)
class UpsertProduct:
    product: Product

    @property
    def product_id(self) -> int:
        return self.product.id


Change = Union[DeleteProduct, UpsertProduct]


# -----------------------------------------------------------------------------
# 처리 결과
# -----------------------------------------------------------------------------
class Status(str, Enum):
    APPLIED = "applied"
    # 적재는 됐지만 optional 필드(weight)를 버림
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass
class Outcome:
    """
    메시지 1건 처리 결과

    - APPLIED / DEGRADED => consume loop가 offset commit
    - FAILED             => commit 하지 않음. retryable이면 재시도 대상 (store 장애)
    """

    status: Status
    change: Optional[Change] = None
    error: Optional[BaseException] = None
    retryable: bool = False
    kafka_meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is not Status.FAILED
