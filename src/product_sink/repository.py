import logging
import time

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from . import config
from .exceptions import StoreError
from .models import Change, DeleteProduct, Product, UpsertProduct

logger = logging.getLogger(__name__)


# =============================================================================
# Mongo 연결 (재시도)
# =============================================================================
def connect_mongo_with_retry(uri=None, retries=None, interval=None, client_factory=MongoClient):
    """ping 성공할 때까지 재시도. retries 소진하면 마지막 에러를 올린다."""
    uri = uri or config.MONGO_URI
    retries = config.MONGO_CONNECT_RETRIES if retries is None else retries
    interval = config.MONGO_RETRY_INTERVAL if interval is None else interval

    attempt = 0
    while True:
        attempt += 1
        client = client_factory(uri, serverSelectionTimeoutMS=2000)
        try:
            client.admin.command("ping")
            logger.info("✅ MongoDB 연결 성공 (%s)", uri)
            return client
        except PyMongoError as e:
            client.close()
            if attempt > retries:
                raise
            logger.warning("⏳ MongoDB 연결 실패: %s (%.0f초 후 재시도 %d/%d)", e, interval, attempt, retries)
            time.sleep(interval)


# =============================================================================
# Repository
# =============================================================================
class MongoRepository:
    """
    product 컬렉션 쓰기 전담

    두 연산 모두 재실행해도 결과가 같다 (at-least-once 재전달 대비).
    - delete_product: 없는 문서 삭제는 no-op 성공
    - upsert_product: filter + $set + upsert=True 한 번으로 처리 (존재 확인 쿼리 없음)
    """

    def __init__(self, collection):
        self.collection = collection

    @classmethod
    def from_client(cls, client, database=None, collection=None):
        db = client[database or config.MONGO_DB]
        return cls(db[collection or config.MONGO_COLLECTION])

    def delete_product(self, product_id: int) -> int:
        try:
            result = self.collection.delete_one({"_id": product_id})
        except PyMongoError as e:
            raise StoreError(f"delete failed for product {product_id}: {e}") from e
        logger.debug("delete _id=%s deleted=%s", product_id, result.deleted_count)
        return result.deleted_count

    def upsert_product(self, product: Product) -> None:
        try:
            result = self.collection.update_one(
                {"_id": product.id},
                {"$set": product.to_document_fields()},
                upsert=True,
            )
        except PyMongoError as e:
            raise StoreError(f"upsert failed for product {product.id}: {e}") from e
        logger.debug(
            "upsert _id=%s matched=%s upserted_id=%s",
            product.id, result.matched_count, result.upserted_id,
        )

    def apply(self, change: Change) -> None:
        if isinstance(change, DeleteProduct):
            self.delete_product(change.product_id)
        elif isinstance(change, UpsertProduct):
            self.upsert_product(change.product)
        else:
            raise TypeError(f"unsupported change: {change!r}")
