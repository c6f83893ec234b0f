"""
  DUW 큐 모니터 메인 애플리케이션
  - 백그라운드: 10초 폴링으로 큐 상태 조회, 스냅샷 저장, 대기표 전이 알림
  - API: 헬스체크 및 최신 스냅샷 조회
"""
from fastapi import FastAPI, HTTPException, Query
from contextlib import asynccontextmanager
import logging
from datetime import datetime

from .database.config import config, get_polling_config, resolve_log_level
from .database.snapshot_store import get_snapshot_store
from .monitor.fetcher import get_queue_fetcher
from .monitor.models import MonitoredStream
from .monitor.notifier import get_telegram_notifier
from .polling.calendar_gate import CalendarGate
from .polling.cycle import MonitoringCycle
from .polling.scheduler import QueuePollingScheduler

logging.basicConfig(level=resolve_log_level(config.LOG_LEVEL))
logger = logging.getLogger(__name__)

STARTUP_MESSAGE = "Starting duw queue monitoring 🫢"


def build_scheduler(store, notifier) -> QueuePollingScheduler:
    """설정 기반 스케줄러 구성 - 저장소는 호출자가 소유"""
    polling_config = get_polling_config()
    cycle = MonitoringCycle(store=store, fetcher=get_queue_fetcher(), notifier=notifier)
    gate = CalendarGate(
        start_hour=polling_config["start_hour"],
        end_hour=polling_config["end_hour"],
        timezone=polling_config["timezone"]
    )
    return QueuePollingScheduler(
        cycle=cycle,
        gate=gate,
        poll_interval=polling_config["poll_interval"],
        max_concurrent_cycles=polling_config["max_concurrent_cycles"]
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 생명주기 관리
    - 시작 알림 실패, DB 연결 실패는 치명적 (예외 전파 -> 프로세스 종료)
    """
    notifier = get_telegram_notifier()
    store = get_snapshot_store()
    scheduler = None

    try:
        logger.info("애플리케이션 시작 - 리소스 초기화")
        notifier.notify(STARTUP_MESSAGE)

        store.open()
        store.ensure_schema()
        logger.info("PostgreSQL 저장소 초기화 완료")

        scheduler = build_scheduler(store, notifier)
        scheduler.start()

        app.state.store = store
        app.state.scheduler = scheduler
        logger.info("애플리케이션 시작 완료")
        logger.info(f"- Telegram 알림: {'✅' if notifier.is_configured else '비활성화'}")
        logger.info(f"- 폴링 스케줄러 ({scheduler.poll_interval}초 주기): ✅")
    except Exception as e:
        logger.error(f"❌ 서버 초기화 실패: {e}")
        store.close()
        raise
    yield # yield 이전: 앱 시작 시 실행 (리소스 초기화) , yield 이후: 앱 종료 시 실행 (리소스 정리)

    try:
        scheduler.stop()
    finally:
        store.close()
        logger.info("✅ 서버 종료")

app = FastAPI(
    title="DUW Queue Monitor",
    description="""
    **DUW 창구 대기표 모니터링**

    - 🔄 근무 시간(Europe/Warsaw, 평일)에 10초마다 큐 상태 조회
    - 🗄️ 카드 수령 카테고리 스냅샷을 PostgreSQL에 저장
    - 📣 대기표가 생기거나 소진되면 Telegram 알림
    """,
    version="1.0.0",
    lifespan=lifespan
)

@app.get("/", tags=["시스템"])
async def root():
    """루트 엔드포인트"""
    return {
        "service": "DUW Queue Monitor",
        "status": "running",
        "monitored_streams": [stream.category_name for stream in MonitoredStream],
        "timestamp": datetime.now().isoformat()
    }

@app.get("/health", tags=["monitoring"])
def health_check():
    """
    헬스체크 엔드포인트
    - PostgreSQL 연결 상태
    - 폴링 스케줄러 상태
    """
    store = getattr(app.state, "store", None)
    scheduler = getattr(app.state, "scheduler", None)
    postgres_status = store.health_check() if store else {"is_connected": False}
    polling_status = scheduler.get_status() if scheduler else {"is_running": False}

    overall_healthy = postgres_status.get("is_connected", False) and polling_status.get("is_running", False)
    return {
        "status": "healthy" if overall_healthy else "unhealthy",
        "timestamp": datetime.now().isoformat(),
        "services": {
            "postgres": postgres_status,
            "polling_scheduler": polling_status
        }
    }

@app.get("/snapshots/{stream}/latest", tags=["스냅샷"])
def get_latest_snapshot(
    stream: str,
    queue_id: int = Query(..., description="큐 ID"),
    location: str = Query(..., description="지점 이름"),
):
    """(queue_id, location)의 최신 스냅샷 조회 - stream은 odbior_karty 또는 odbior_karty_wieczory"""
    selected = next((s for s in MonitoredStream if s.table_name == stream), None)
    if selected is None:
        raise HTTPException(status_code=404, detail=f"알 수 없는 스트림: {stream}")
    store = getattr(app.state, "store", None)
    if not store:
        raise HTTPException(status_code=503, detail="저장소가 초기화되지 않았습니다.")
    try:
        record = store.latest_snapshot(selected, queue_id, location)
    except Exception as e:
        logger.error(f"스냅샷 조회 실패 - {stream}/{queue_id}/{location}: {e}")
        raise HTTPException(status_code=500, detail=f"스냅샷 조회 실패: {str(e)}")
    if record is None:
        raise HTTPException(status_code=404, detail="스냅샷이 없습니다.")
    return record.to_dict()

def run():
    """uvicorn 실행 - lifespan 시작 실패 시 프로세스 종료"""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.APP_PORT)

if __name__ == "__main__":
    run()
