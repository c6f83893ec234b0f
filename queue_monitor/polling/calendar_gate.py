"""
    근무 시간 게이트 - 지정 시간대(Europe/Warsaw) 기준
    - [start_hour, end_hour) 구간이고 주말이 아닐 때만 통과
    - 시간대 로드 실패 시 항상 닫힘
"""
import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

SATURDAY = 5
SUNDAY = 6


def is_within_working_hours(hour: int, start_hour: int, end_hour: int) -> bool:
    return start_hour <= hour < end_hour


def is_weekend(moment: datetime) -> bool:
    return moment.weekday() in (SATURDAY, SUNDAY)


class CalendarGate:
    def __init__(self, start_hour: int = 8, end_hour: int = 18, timezone: str = "Europe/Warsaw"):
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.timezone = timezone

    def closed_reason(self, now: Optional[datetime] = None) -> Optional[str]:
        """게이트가 닫힌 이유, 열려 있으면 None"""
        try:
            tz = ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            logger.error(f"시간대 로드 실패 ({self.timezone}): {e}")
            return f"timezone {self.timezone} unavailable"

        local_now = now.astimezone(tz) if now else datetime.now(tz)
        if not is_within_working_hours(local_now.hour, self.start_hour, self.end_hour):
            return f"outside working hours ({self.start_hour:02d}:00 - {self.end_hour:02d}:00 {self.timezone})"
        if is_weekend(local_now):
            return "weekend (Sat-Sun)"
        return None

    def is_open(self, now: Optional[datetime] = None) -> bool:
        return self.closed_reason(now) is None
