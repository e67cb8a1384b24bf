"""
store.py - DynamoDB 카운터 저장소

하나의 고정 키에 정수 하나를 저장합니다.
읽기(GetItem) 한 번, 쓰기(PutItem) 한 번이 요청 하나가 하는 일의 전부입니다.

-- 왜: UpdateExpression(ADD)이 아니라 GetItem + PutItem을 사용합니다.
비교 대상인 원래 함수들이 이 방식으로 동작하므로 지연시간 측정도 같은 패턴이어야 합니다.
조건식(ConditionExpression)이 없으므로 동시에 들어온 요청끼리 증가분을 잃을 수 있습니다.

질문: 두 요청이 동시에 N을 읽고 둘 다 N+1을 쓰면 최종 값은 얼마일까요?
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

KEY_ATTRIBUTE = "Counter"
VALUE_ATTRIBUTE = "Count"


@dataclass
class CounterRecord:
    key: str
    value: int
    updated_at: str
    variant_tag: str
    snapstart: bool = False

    def to_item(self) -> dict:
        return {
            KEY_ATTRIBUTE: self.key,
            VALUE_ATTRIBUTE: self.value,
            "LastUpdated": self.updated_at,
            "LambdaType": self.variant_tag,
            "SnapStartEnabled": self.snapstart,
        }

    @classmethod
    def from_item(cls, item: dict) -> "CounterRecord":
        # boto3 리소스는 숫자를 Decimal로 돌려줍니다. float를 거치지 않고 int로 바꿉니다.
        raw = item.get(VALUE_ATTRIBUTE, 0)
        value = int(raw)
        if value != raw:
            raise ValueError(f"{VALUE_ATTRIBUTE} 값이 정수가 아닙니다: {raw!r}")
        return cls(
            key=item[KEY_ATTRIBUTE],
            value=value,
            updated_at=item.get("LastUpdated", ""),
            variant_tag=item.get("LambdaType", ""),
            snapstart=bool(item.get("SnapStartEnabled", False)),
        )


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CounterStore:
    """
    DynamoDB Table을 감싸는 카운터 저장소

    botocore 예외(ClientError 등)는 잡지 않고 그대로 올려보냅니다.
    500 응답으로 바꾸는 것은 핸들러의 책임입니다.
    """

    def __init__(self, table):
        self.table = table

    def get(self, key: str) -> Optional[CounterRecord]:
        result = self.table.get_item(Key={KEY_ATTRIBUTE: key})
        item = result.get("Item")
        if not item:
            return None
        return CounterRecord.from_item(item)

    def put(self, record: CounterRecord) -> None:
        # 전체 덮어쓰기. 부분 업데이트나 조건부 쓰기가 아닙니다.
        self.table.put_item(Item=record.to_item())

    def increment(
        self,
        key: str,
        variant_tag: str,
        snapstart: bool = False,
        now: Optional[str] = None,
    ) -> int:
        """
        읽기 → +1 → 쓰기를 수행하고 새 값을 반환합니다.

        레코드가 없으면 현재 값을 0으로 봅니다.
        put이 실패하면 아무것도 기록되지 않고 예외가 그대로 전파됩니다.
        """
        current = self.get(key)
        current_value = current.value if current is not None else 0
        new_value = current_value + 1

        self.put(
            CounterRecord(
                key=key,
                value=new_value,
                updated_at=now or utc_now(),
                variant_tag=variant_tag,
                snapstart=snapstart,
            )
        )
        return new_value
