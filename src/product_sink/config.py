import logging
import os


# =============================================================================
# 환경변수
# =============================================================================
KAFKA_BOOTSTRAP_SERVERS = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
KAFKA_TOPIC = os.getenv("KAFKA_TOPIC", "DBTestServer.public.product")  # Debezium: <prefix>.<schema>.<table>
KAFKA_GROUP_ID = os.getenv("KAFKA_GROUP_ID", "product-mongo")
AUTO_OFFSET_RESET = os.getenv("AUTO_OFFSET_RESET", "earliest")
# poll 대기 시간. 빈 poll은 그냥 다시 돈다 (stop 신호 확인용)
POLL_TIMEOUT_MS = int(os.getenv("POLL_TIMEOUT_MS", "1000"))

MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "baseweb")
MONGO_COLLECTION = os.getenv("MONGO_COLLECTION", "product")
MONGO_CONNECT_RETRIES = int(os.getenv("MONGO_CONNECT_RETRIES", "10"))
MONGO_RETRY_INTERVAL = float(os.getenv("MONGO_RETRY_INTERVAL", "3"))

# 0이면 첫 실패에서 바로 중단 (기본)
APPLY_MAX_RETRIES = int(os.getenv("APPLY_MAX_RETRIES", "0"))
APPLY_RETRY_BACKOFF = float(os.getenv("APPLY_RETRY_BACKOFF", "3"))

# Debezium은 two's complement. "false"면 unsigned로 해석
WEIGHT_SIGNED = os.getenv("WEIGHT_SIGNED", "true").lower() not in ("0", "false", "no")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level=None):
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
