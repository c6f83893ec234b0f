"""
    조회 -> 전이 감지 -> 저장 -> 알림 사이클 (tick 1회당 1개)
"""
import logging
from datetime import datetime
from typing import Optional

import psycopg2

from ..database.snapshot_store import PersistenceError, SnapshotStore, StorageUnavailableError, serialize_operations
from ..monitor.change_detector import detect_transition, format_message
from ..monitor.fetcher import FetchError, QueueFetcher
from ..monitor.models import MonitoredStream, QueueObservation
from ..monitor.notifier import TelegramNotifier

logger = logging.getLogger(__name__)


class MonitoringCycle:
    """
    사이클 간 잠금 없음: 직전 값 조회와 저장 사이에 다른 사이클이 끼어들 수 있음.
    겹치는 사이클에서 알림 중복/누락은 허용된 동작.
    """

    def __init__(self, store: SnapshotStore, fetcher: QueueFetcher, notifier: TelegramNotifier):
        self.store = store
        self.fetcher = fetcher
        self.notifier = notifier

    def run(self) -> dict:
        """사이클 1회 실행 - 결과 요약 반환"""
        started_at = datetime.now()
        logger.info("큐 데이터 조회 시작")
        summary = {
            "started_at": started_at.isoformat(),
            "fetched": False,
            "saved": 0,
            "failed": 0,
            "ignored": 0,
            "notifications": 0
        }
        try:
            result = self.fetcher.fetch()
        except FetchError as e:
            logger.error(f"큐 데이터 조회 실패: {e}")
            summary["error"] = str(e)
            return summary

        summary["fetched"] = True
        for observations in result.values():
            for observation in observations:
                stream = observation.stream
                if stream is None:
                    summary["ignored"] += 1
                    continue
                saved, transition = self.process_observation(stream, observation)
                summary["saved" if saved else "failed"] += 1
                if transition is not None:
                    summary["notifications"] += 1

        logger.info(f"사이클 완료: {summary}")
        return summary

    def process_observation(self, stream: MonitoredStream, observation: QueueObservation) -> tuple:
        """
        관측값 1건 처리 -> (저장 성공 여부, 감지된 전이)
        - operations 직렬화가 안 되면 직전 값 조회, 저장, 알림 모두 건너뜀
        """
        try:
            serialize_operations(observation)
        except PersistenceError as e:
            logger.error(f"{stream.category_name} 저장 실패 ({observation.location}, 큐 {observation.category_id}): {e}")
            return False, None

        transition = None
        if stream.tracks_transitions:
            previous = self._previous_tickets_left(observation)
            transition = detect_transition(previous, observation.tickets_left)

        saved = True
        try:
            self.store.insert(stream, observation)
        except PersistenceError as e:
            logger.error(f"{stream.category_name} 저장 실패 ({observation.location}, 큐 {observation.category_id}): {e}")
            saved = False

        if transition is not None:
            logger.info(f"전이 감지: {transition.value} - {observation.location} (큐 {observation.category_id})")
            self.notifier.notify_safely(format_message(transition, observation))
        return saved, transition

    def _previous_tickets_left(self, observation: QueueObservation) -> Optional[int]:
        # 조회 실패는 기준값 없음으로 처리
        try:
            return self.store.latest_tickets_left(observation.category_id, observation.location)
        except (psycopg2.Error, StorageUnavailableError) as e:
            logger.error(f"직전 tickets_left 조회 실패: {e}")
            return None
