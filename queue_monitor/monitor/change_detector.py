"""
    tickets_left 상태 전이 감지
    - 직전 관측값(DB 최신 행)과 현재 관측값 비교
    - 기준값이 없으면 전이를 판단하지 않음
"""
from enum import Enum
from typing import Optional

from .models import QueueObservation


class Transition(Enum):
    TICKETS_APPEARED = "tickets_appeared"
    TICKETS_EXHAUSTED = "tickets_exhausted"


def detect_transition(previous: Optional[int], current: int) -> Optional[Transition]:
    if previous is None:
        return None
    if previous <= 0 and current > 0:
        return Transition.TICKETS_APPEARED
    if previous > 0 and current <= 0:
        return Transition.TICKETS_EXHAUSTED
    return None


def format_message(transition: Transition, observation: QueueObservation) -> str:
    """운영자 채널로 보낼 메시지"""
    if transition is Transition.TICKETS_APPEARED:
        return (
            f"🎉 Внимание! Появились талоны по услуге \"получение карты\" в {observation.location} "
            f"(очередь {observation.category_id}). Доступно: {observation.tickets_left} ✅"
        )
    return (
        f"⛔️ Талоны по услуге \"получение карты\" закончились в {observation.location} "
        f"(очередь {observation.category_id})."
    )
