"""
Sample change-event producer package (local 개발/테스트용).

- data_factory.py: Debezium 형태 product 변경 이벤트 생성 (Faker)
- producer.py: 시나리오별 이벤트를 Kafka로 전송
"""
