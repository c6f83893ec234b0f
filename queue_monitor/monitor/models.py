"""
    큐 상태 데이터 모델
    - QueueObservation: 1회 조회에서 나온 큐 항목 (location 단위)
    - MonitoredStream: 저장/감시 대상 카테고리 2종
    - SnapshotRecord: DB에 저장된 관측값 (id, created_at 포함)
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Optional


class PayloadError(ValueError):
    """업스트림 JSON 형태가 기대와 다름"""


class MonitoredStream(Enum):
    """카테고리 이름(정확히 일치) -> 저장 테이블"""
    CARD_PICKUP = ("odbiór karty", "odbior_karty")
    CARD_PICKUP_EVENING = ("Odbiór karty - wieczory", "odbior_karty_wieczory")

    def __init__(self, category_name: str, table_name: str):
        self.category_name = category_name
        self.table_name = table_name

    @classmethod
    def from_category_name(cls, name: str) -> Optional["MonitoredStream"]:
        for stream in cls:
            if stream.category_name == name:
                return stream
        return None

    @property
    def tracks_transitions(self) -> bool:
        # 저녁 카테고리는 저장만 하고 알림은 보내지 않음
        return self is MonitoredStream.CARD_PICKUP


def _int(item: dict, key: str) -> int:
    value = item.get(key, 0)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise PayloadError(f"{key}: 정수가 아님 ({value!r})")
    return value


def _optional_int(item: dict, key: str) -> Optional[int]:
    value = item.get(key)
    if value is None:
        return None
    return _int(item, key)


def _str(item: dict, key: str) -> str:
    value = item.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PayloadError(f"{key}: 문자열이 아님 ({value!r})")
    return value


def _bool(item: dict, key: str) -> bool:
    value = item.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise PayloadError(f"{key}: bool이 아님 ({value!r})")
    return value


@dataclass
class Operation:
    id: str
    name: str
    enabled: bool

    @classmethod
    def from_dict(cls, item: dict) -> "Operation":
        if not isinstance(item, dict):
            raise PayloadError(f"operation 항목이 객체가 아님: {item!r}")
        return cls(id=_str(item, "id"), name=_str(item, "name"), enabled=_bool(item, "enabled"))


@dataclass
class QueueObservation:
    category_id: int
    category_name: str
    location: str
    ticket_count: int = 0
    tickets_served: int = 0
    workplaces: int = 0
    registered_tickets: int = 0
    tickets_left: int = 0
    average_wait_time: Optional[int] = None
    average_service_time: Optional[int] = None
    max_tickets: Optional[int] = None
    ticket_value: str = ""
    active: bool = False
    enabled: bool = False
    operations: List[Operation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, item: dict, location: str) -> "QueueObservation":
        """
        API 항목(dict) -> QueueObservation
        - location은 응답의 그룹 키를 사용 (항목 내부 location 필드가 아님)
        - 누락된 키는 기본값, 타입이 틀리면 PayloadError
        """
        if not isinstance(item, dict):
            raise PayloadError(f"큐 항목이 객체가 아님: {item!r}")
        operations = item.get("operations") or []
        if not isinstance(operations, list):
            raise PayloadError(f"operations: 배열이 아님 ({operations!r})")
        return cls(
            category_id=_int(item, "id"),
            category_name=_str(item, "name"),
            location=location,
            ticket_count=_int(item, "ticket_count"),
            tickets_served=_int(item, "tickets_served"),
            workplaces=_int(item, "workplaces"),
            registered_tickets=_int(item, "registered_tickets"),
            tickets_left=_int(item, "tickets_left"),
            average_wait_time=_optional_int(item, "average_wait_time"),
            average_service_time=_optional_int(item, "average_service_time"),
            max_tickets=_optional_int(item, "max_tickets"),
            ticket_value=_str(item, "ticket_value"),
            active=_bool(item, "active"),
            enabled=_bool(item, "enabled"),
            operations=[Operation.from_dict(op) for op in operations],
        )

    @property
    def stream(self) -> Optional[MonitoredStream]:
        return MonitoredStream.from_category_name(self.category_name)

    def operations_as_dicts(self) -> List[dict]:
        return [asdict(op) for op in self.operations]


@dataclass
class SnapshotRecord:
    """DB 행 하나 (append-only)"""
    id: int
    created_at: datetime
    observation: QueueObservation

    @classmethod
    def from_row(cls, row: dict) -> "SnapshotRecord":
        operations = row.get("operations") or []
        return cls(
            id=row["id"],
            created_at=row["created_at"],
            observation=QueueObservation(
                category_id=row["queue_id"],
                category_name=row["name"],
                location=row["location"],
                ticket_count=row["ticket_count"],
                tickets_served=row["tickets_served"],
                workplaces=row["workplaces"],
                registered_tickets=row["registered_tickets"],
                tickets_left=row["tickets_left"],
                average_wait_time=row["average_wait_time"],
                average_service_time=row["average_service_time"],
                max_tickets=row["max_tickets"],
                ticket_value=row["ticket_value"],
                active=row["active"],
                enabled=row["enabled"],
                operations=[Operation(**op) for op in operations],
            ),
        )

    def to_dict(self) -> dict:
        data = asdict(self.observation)
        data.update({"id": self.id, "created_at": self.created_at.isoformat()})
        return data


def parse_queue_payload(payload) -> dict:
    """{"result": {location: [item, ...]}} -> {location: [QueueObservation, ...]}"""
    if not isinstance(payload, dict) or not isinstance(payload.get("result"), dict):
        raise PayloadError("응답에 result 객체가 없음")
    observations = {}
    for location, items in payload["result"].items():
        if not isinstance(items, list):
            raise PayloadError(f"{location}: 큐 목록이 배열이 아님")
        observations[location] = [QueueObservation.from_dict(item, location) for item in items]
    return observations
