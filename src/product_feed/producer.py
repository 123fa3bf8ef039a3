import logging
import os
import random
import time

from kafka import KafkaProducer
from kafka.errors import NoBrokersAvailable

from product_feed.data_factory import (
    PRODUCT_CATALOG,
    build_create_event,
    build_delete_event,
    build_key,
    build_product_row,
    build_update_event,
    fake,
    to_bytes,
)
from product_sink.config import configure_logging

logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# ⚙️ 카프카 접속 및 토픽 설정
# ---------------------------------------------------------
BOOTSTRAP_SERVERS = os.getenv('KAFKA_BOOTSTRAP_SERVERS', 'localhost:9092')
TOPIC_NAME = os.getenv('KAFKA_TOPIC', 'DBTestServer.public.product')


def create_producer():
    """카프카 브로커 연결 시도 (연결될 때까지 재시도)"""
    producer = None
    logger.info("📡 카프카 브로커 연결 시도 중... (%s)", BOOTSTRAP_SERVERS)

    while not producer:
        try:
            producer = KafkaProducer(
                bootstrap_servers=[BOOTSTRAP_SERVERS],
                # key/value는 data_factory.to_bytes로 직접 직렬화 (tombstone은 None)
                acks='all',
                retries=5
            )
            logger.info("✅ 카프카 연결 성공!")
        except NoBrokersAvailable:
            logger.warning("⏳ 브로커를 찾을 수 없습니다. 3초 후 재시도...")
            time.sleep(3)
    return producer


def send_change(producer, product_id, event):
    producer.send(TOPIC_NAME, key=to_bytes(build_key(product_id)), value=to_bytes(event))


def send_tombstone(producer, product_id):
    # Debezium은 delete 이벤트 직후 같은 key로 빈 value를 한 번 더 보낸다
    producer.send(TOPIC_NAME, key=to_bytes(build_key(product_id)), value=None)


def run_scenario(producer, live_rows):
    """
    한 번에 한 시나리오 전송. live_rows: 현재 살아있는 상품 {id: row}
    반환값은 로그용 시나리오 이름
    """
    dice = random.random()

    # 1️⃣ 시나리오: 수정 (40%)
    if dice < 0.40 and live_rows:
        product_id = random.choice(list(live_rows))
        before = live_rows[product_id]
        event = build_update_event(before, description=fake.sentence())
        live_rows[product_id] = event["after"]
        send_change(producer, product_id, event)
        return f"✏️ [UPDATE] {product_id} | {before['name']}"

    # 2️⃣ 시나리오: 삭제 + tombstone (15%)
    if dice < 0.55 and live_rows:
        product_id = random.choice(list(live_rows))
        before = live_rows.pop(product_id)
        send_change(producer, product_id, build_delete_event(before))
        send_tombstone(producer, product_id)
        return f"🗑️ [DELETE] {product_id} | {before['name']}"

    # 3️⃣ 평시: 신규 상품 (나머지)
    row = build_product_row(item=random.choice(PRODUCT_CATALOG))
    live_rows[row["id"]] = row
    send_change(producer, row["id"], build_create_event(row))
    return f"✅ [CREATE] {row['id']} | {row['name']}"


# ---------------------------------------------------------
# 🚀 메인 실행부
# ---------------------------------------------------------
def main():
    configure_logging()
    producer = create_producer()
    logger.info("🚀 [프로듀서] '%s' 토픽으로 product 변경 이벤트 전송 시작...", TOPIC_NAME)

    live_rows = {}
    try:
        while True:
            scenario_name = run_scenario(producer, live_rows)
            producer.flush()  # 배송 완료 보장
            logger.info(scenario_name)

            # 시나리오 사이의 기본 대기 시간 (0.5초 ~ 1.5초)
            time.sleep(random.uniform(0.5, 1.5))

    except KeyboardInterrupt:
        logger.info("🛑 프로듀서를 종료합니다.")
    finally:
        producer.close()


if __name__ == "__main__":
    main()
