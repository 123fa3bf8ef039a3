"""
Product CDC sink package (Kafka -> MongoDB).

- consumer.py: poll 루프 + 커밋 (처리 성공한 메시지만)
- handler.py: 메시지 1건 디코딩 + 적재 호출, 결과(Outcome) 반환
- decoder.py: Debezium 엔벨로프 -> DeleteProduct / UpsertProduct
- decimal_codec.py: scaled decimal(base64) <-> Decimal128
- repository.py: MongoDB 쿼리 전담
"""

__version__ = "0.1.0"
