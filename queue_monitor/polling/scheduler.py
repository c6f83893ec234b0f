"""
    폴링 스케줄러
"""
import threading
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from ..database.config import validate_polling_settings
from .calendar_gate import CalendarGate
from .cycle import MonitoringCycle

logger = logging.getLogger(__name__)

class QueuePollingScheduler:
    def __init__(self, cycle: MonitoringCycle, gate: CalendarGate, poll_interval: float = 10,
                 max_concurrent_cycles: int = 8):
        """폴링 스케줄러 초기화 - 주기 <= 0 또는 상한 < 1 이면 ValueError"""
        validate_polling_settings(poll_interval, max_concurrent_cycles)
        self.cycle = cycle
        self.gate = gate
        self.is_running = False
        self.poll_interval = poll_interval # 10초
        self.max_concurrent_cycles = max_concurrent_cycles
        self.last_tick = None
        self.ticks_launched = 0
        self.ticks_skipped = 0
        self.polling_thread = None
        self._stop_event = threading.Event()
        # 동시 실행 사이클 상한 - 빈 슬롯이 없으면 tick을 건너뜀
        self._slots = threading.BoundedSemaphore(max_concurrent_cycles)
        self._in_flight = 0
        self._in_flight_lock = threading.Lock()
        self._executor = None
        logger.info("폴링 스케줄러 초기화 완료")

    def start(self) -> None:
        """poll_interval 주기 폴링 시작"""
        if self.is_running:
            logger.warning("폴링 스케줄러가 이미 실행중입니다.")
            return
        self.is_running = True
        self._stop_event.clear()
        self._ensure_executor()
        self.polling_thread = threading.Thread(target=self._polling_loop, daemon=True)
        self.polling_thread.start()
        logger.info(
            f"폴링 스케줄러 시작 완료 ({self.poll_interval}초 주기, "
            f"근무 시간 {self.gate.start_hour:02d}:00 - {self.gate.end_hour:02d}:00 {self.gate.timezone})"
        )

    def stop(self) -> None:
        """폴링 중지 - 진행 중인 사이클은 취소하지 않음"""
        if not self.is_running:
            return
        self.is_running = False
        self._stop_event.set()

        if self.polling_thread and self.polling_thread.is_alive():
            self.polling_thread.join(timeout=5)
        if self._executor:
            self._executor.shutdown(wait=False)
            self._executor = None
        logger.info("폴링 스케줄러 종료 완료")

    def get_status(self) -> dict:
        """폴링 상태 조회"""
        return {
            "is_running": self.is_running,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "poll_interval": self.poll_interval,
            "in_flight_cycles": self._in_flight,
            "max_concurrent_cycles": self.max_concurrent_cycles,
            "ticks_launched": self.ticks_launched,
            "ticks_skipped": self.ticks_skipped
        }

    def _polling_loop(self) -> None:
        """첫 tick은 poll_interval 이후"""
        while not self._stop_event.wait(self.poll_interval):
            try:
                self.tick()
            except Exception as e:
                logger.error(f"폴링 루프 오류: {e}")

    def tick(self) -> bool:
        """게이트 확인 후 사이클 1개를 비동기로 실행 - 실행했으면 True"""
        self.last_tick = datetime.now()
        reason = self.gate.closed_reason()
        if reason is not None:
            self.ticks_skipped += 1
            logger.info(f"{reason}, 조회 건너뛰기")
            return False

        if not self._slots.acquire(blocking=False):
            self.ticks_skipped += 1
            logger.warning(f"동시 실행 사이클 상한({self.max_concurrent_cycles}) 도달, 조회 건너뛰기")
            return False

        with self._in_flight_lock:
            self._in_flight += 1
        try:
            future = self._ensure_executor().submit(self.cycle.run)
        except RuntimeError:
            self._release_slot()
            raise
        future.add_done_callback(self._on_cycle_done)
        self.ticks_launched += 1
        return True

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_concurrent_cycles,
                thread_name_prefix="queue-cycle"
            )
        return self._executor

    def _on_cycle_done(self, future) -> None:
        self._release_slot()
        error = future.exception()
        if error is not None:
            logger.error(f"사이클 실행 실패: {error}")

    def _release_slot(self) -> None:
        with self._in_flight_lock:
            self._in_flight -= 1
        self._slots.release()
