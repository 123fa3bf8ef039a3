import logging
from typing import Any, Dict, Optional

from .decoder import decode_message
from .exceptions import DecodeError, StoreError
from .models import Outcome, Status, UpsertProduct
from .repository import MongoRepository

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# 메인 핸들러
# -----------------------------------------------------------------------------
def handle_message(
    key: Optional[bytes],
    value: Optional[bytes],
    repo: MongoRepository,
    kafka_meta: Optional[Dict[str, Any]] = None,
    signed_weight: bool = True,
) -> Outcome:
    """
    ✅ 메시지 1개 처리 함수 (consumer.py에서 호출)

    반환값 규칙:
    - APPLIED  => 처리 완료 (consumer가 offset commit)
    - DEGRADED => 처리 완료, 단 weight를 표현 못 해서 null로 저장 (commit)
    - FAILED   => commit 금지
        * 디코딩 실패: retryable=False (같은 메시지는 또 실패한다, 스키마 문제)
        * Mongo 실패: retryable=True

    파싱 실패를 건너뛰거나 기본값으로 채우지 않는다. 조용히 유실되는 것보다 멈추는 게 낫다.
    """
    kafka_meta = kafka_meta or {}

    # 1) 디코딩
    try:
        change = decode_message(key, value, signed_weight=signed_weight)
    except DecodeError as e:
        logger.error("❌ [디코딩 실패] %s error=%s", _where(kafka_meta), e)
        return Outcome(status=Status.FAILED, error=e, retryable=False, kafka_meta=kafka_meta)

    # 2) 적재 (delete or upsert)
    try:
        repo.apply(change)
    except StoreError as e:
        logger.error("❌ [Mongo 적재 실패] %s product_id=%s error=%s", _where(kafka_meta), change.product_id, e)
        return Outcome(status=Status.FAILED, change=change, error=e, retryable=True, kafka_meta=kafka_meta)

    if isinstance(change, UpsertProduct) and change.product.weight_dropped:
        logger.warning("⚠️ [weight 버림] product_id=%s %s", change.product_id, _where(kafka_meta))
        return Outcome(status=Status.DEGRADED, change=change, kafka_meta=kafka_meta)

    logger.info("✅ %s product_id=%s", type(change).__name__, change.product_id)
    return Outcome(status=Status.APPLIED, change=change, kafka_meta=kafka_meta)


def _where(kafka_meta: Dict[str, Any]) -> str:
    return "topic={} partition={} offset={}".format(
        kafka_meta.get("topic"), kafka_meta.get("partition"), kafka_meta.get("offset")
    )
