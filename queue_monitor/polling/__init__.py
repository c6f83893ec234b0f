"""
Polling 모듈 - 근무 시간 게이트, 스케줄링, 조회 사이클
"""
from .calendar_gate import CalendarGate
from .cycle import MonitoringCycle
from .scheduler import QueuePollingScheduler

# Public API
__all__ = [
    "CalendarGate",
    "MonitoringCycle",
    "QueuePollingScheduler"
]
