import logging
import signal
import sys
import time

from kafka import KafkaConsumer, TopicPartition
from kafka.structs import OffsetAndMetadata

from . import config
from .exceptions import SinkHalted
from .handler import handle_message
from .repository import MongoRepository, connect_mongo_with_retry

logger = logging.getLogger(__name__)


# =============================================================================
# Kafka consumer 생성
# =============================================================================
def build_consumer(topic=None, **overrides):
    """수동 커밋 consumer. value/key는 bytes 그대로 받는다 (디코딩은 decoder 담당)"""
    settings = dict(
        bootstrap_servers=[config.KAFKA_BOOTSTRAP_SERVERS],
        group_id=config.KAFKA_GROUP_ID,
        auto_offset_reset=config.AUTO_OFFSET_RESET,
        enable_auto_commit=False,
    )
    settings.update(overrides)
    return KafkaConsumer(topic or config.KAFKA_TOPIC, **settings)


# =============================================================================
# Consume loop
# =============================================================================
class ConsumeLoop:
    """
    poll -> decode -> apply -> commit, 한 번에 한 건씩

    - commit은 apply 성공 후에만 (at-least-once)
    - 실패하면 SinkHalted. offset은 그대로라 재시작하면 같은 메시지부터 다시 받는다
    - stop()은 처리 중인 메시지의 commit까지 끝난 뒤에 반영된다
    """

    def __init__(
        self,
        consumer,
        repository,
        poll_timeout_ms=None,
        max_retries=None,
        retry_backoff=None,
        signed_weight=None,
        sleep=time.sleep,
    ):
        self.consumer = consumer
        self.repository = repository
        self.poll_timeout_ms = config.POLL_TIMEOUT_MS if poll_timeout_ms is None else poll_timeout_ms
        self.max_retries = config.APPLY_MAX_RETRIES if max_retries is None else max_retries
        self.retry_backoff = config.APPLY_RETRY_BACKOFF if retry_backoff is None else retry_backoff
        self.signed_weight = config.WEIGHT_SIGNED if signed_weight is None else signed_weight
        self._sleep = sleep
        self._running = False
        self.processed = 0

    def stop(self, *_):
        if self._running:
            logger.info("🛑 종료 요청 수신, 현재 메시지 처리 후 종료")
        self._running = False

    def run(self):
        self._running = True
        logger.info("📨 Kafka Consumer 시작 (subscription=%s)", self.consumer.subscription())

        while self._running:
            batch = self.consumer.poll(timeout_ms=self.poll_timeout_ms, max_records=1)
            for records in batch.values():
                for record in records:
                    self.process(record)

        logger.info("✅ Consume loop 종료 (processed=%d)", self.processed)

    def process(self, record):
        kafka_meta = {
            "topic": record.topic,
            "partition": record.partition,
            "offset": record.offset,
            "timestamp": record.timestamp,
        }
        logger.info(
            "메시지 수신 topic=%s partition=%s offset=%s key=%r",
            record.topic, record.partition, record.offset, record.key,
        )

        attempt = 0
        while True:
            outcome = handle_message(
                record.key, record.value, self.repository,
                kafka_meta=kafka_meta, signed_weight=self.signed_weight,
            )
            if outcome.ok:
                break
            if not outcome.retryable or attempt >= self.max_retries:
                raise SinkHalted(
                    outcome,
                    f"halted at {record.topic}[{record.partition}]@{record.offset}: {outcome.error}",
                ) from outcome.error
            attempt += 1
            logger.warning("⏳ 적재 재시도 %d/%d (%.1f초 후)", attempt, self.max_retries, self.retry_backoff)
            self._sleep(self.retry_backoff)

        self.commit(record)
        self.processed += 1
        return outcome

    def commit(self, record):
        # 커밋 값은 "다음에 읽을 offset"
        tp = TopicPartition(record.topic, record.partition)
        self.consumer.commit({tp: OffsetAndMetadata(record.offset + 1, "", -1)})


# =============================================================================
# 메인
# =============================================================================
def main():
    config.configure_logging()
    logger.info("📨 Product CDC sink 시작 (%s -> %s.%s)", config.KAFKA_TOPIC, config.MONGO_DB, config.MONGO_COLLECTION)

    client = connect_mongo_with_retry()
    consumer = None
    try:
        consumer = build_consumer()
        loop = ConsumeLoop(consumer, MongoRepository.from_client(client))

        signal.signal(signal.SIGINT, loop.stop)
        signal.signal(signal.SIGTERM, loop.stop)

        loop.run()
    except SinkHalted as e:
        logger.error("🔥 %s", e)
        return 1
    finally:
        if consumer is not None:
            consumer.close(autocommit=False)
        client.close()
        logger.info("✅ Mongo / Consumer 종료")
    return 0


if __name__ == "__main__":
    sys.exit(main())
