"""
Monitor 모듈 - 큐 데이터 모델, 조회기, 전이 감지, 알림
"""
from .models import MonitoredStream, Operation, QueueObservation, SnapshotRecord
from .change_detector import Transition, detect_transition, format_message
from .fetcher import FetchError, ProxyTemplate, QueueFetcher, get_queue_fetcher
from .notifier import NotifyError, TelegramNotifier, get_telegram_notifier

# Public API
__all__ = [
    # Models
    "MonitoredStream",
    "Operation",
    "QueueObservation",
    "SnapshotRecord",

    # Change detection
    "Transition",
    "detect_transition",
    "format_message",

    # Adapters
    "FetchError",
    "ProxyTemplate",
    "QueueFetcher",
    "get_queue_fetcher",
    "NotifyError",
    "TelegramNotifier",
    "get_telegram_notifier"
]
