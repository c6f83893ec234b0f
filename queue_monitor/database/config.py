"""
애플리케이션 설정 파일 - .env 파일 기반
"""
import os
import logging
from dotenv import load_dotenv
# .env 파일 로드
load_dotenv()

logger = logging.getLogger(__name__)


def _get_env(key: str, default: str) -> str:
    """빈 문자열도 미설정으로 취급"""
    value = os.getenv(key)
    return value if value else default


def _get_env_int(key: str, default: int) -> int:
    """정수 환경변수 조회 - 잘못된 값이면 경고 후 기본값 사용"""
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"{key} 값이 정수가 아닙니다: {value!r}, 기본값 사용: {default}")
        return default


class Config:
    """애플리케이션 설정 클래스"""
    # === PostgreSQL 설정 ===
    DB_HOST: str = _get_env("DB_HOST", "localhost")
    DB_PORT: int = _get_env_int("DB_PORT", 5432)
    DB_USER: str = _get_env("DB_USER", "postgres")
    DB_PASSWORD: str = _get_env("DB_PASSWORD", "password")
    DB_NAME: str = _get_env("DB_NAME", "duw_queue")

    # === 근무 시간 (Europe/Warsaw) ===
    WORK_START_HOUR: int = _get_env_int("WORK_START_HOUR", 8)
    WORK_END_HOUR: int = _get_env_int("WORK_END_HOUR", 18)
    TIMEZONE: str = "Europe/Warsaw"

    # === 폴링 설정 ===
    POLL_INTERVAL: int = _get_env_int("POLL_INTERVAL_SECONDS", 10)
    FETCH_TIMEOUT: int = _get_env_int("FETCH_TIMEOUT_SECONDS", 30)
    MAX_CONCURRENT_CYCLES: int = _get_env_int("MAX_CONCURRENT_CYCLES", 8)
    QUEUE_STATUS_URL: str = "https://rezerwacje.duw.pl/status_kolejek/query.php?status"

    # === 프록시 설정 (없으면 직접 연결) ===
    PROXY_USERNAME: str = os.getenv("PROXY_USERNAME", "")
    PROXY_PASSWORD: str = os.getenv("PROXY_PASSWORD", "")
    PROXY_ADDRESS: str = os.getenv("PROXY_ADDRESS", "")
    PROXY_PORT: str = os.getenv("PROXY_PORT", "")

    # === Telegram 설정 (없으면 알림 비활성화) ===
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_CHAT_ID: str = os.getenv("TELEGRAM_CHAT_ID", "")

    # === 애플리케이션 설정 ===
    APP_PORT: int = _get_env_int("APP_PORT", 8000)

    # === 로깅 설정 ===
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


# 근무 시간 범위 검증
def validate_working_hours(start_hour: int = None, end_hour: int = None):
    """근무 시간 설정이 0~24 범위인지 검증"""
    hours = {
        "WORK_START_HOUR": Config.WORK_START_HOUR if start_hour is None else start_hour,
        "WORK_END_HOUR": Config.WORK_END_HOUR if end_hour is None else end_hour,
    }
    for name, value in hours.items():
        if not 0 <= value <= 24:
            raise ValueError(f"{name} 값은 0~24 사이여야 합니다: {value}")

# 폴링 설정 검증
def validate_polling_settings(poll_interval: float = None, max_concurrent_cycles: int = None):
    """폴링 주기는 양수, 동시 사이클 상한은 1 이상"""
    poll_interval = Config.POLL_INTERVAL if poll_interval is None else poll_interval
    max_concurrent_cycles = Config.MAX_CONCURRENT_CYCLES if max_concurrent_cycles is None else max_concurrent_cycles
    if poll_interval <= 0:
        raise ValueError(f"POLL_INTERVAL_SECONDS 값은 양수여야 합니다: {poll_interval}")
    if max_concurrent_cycles < 1:
        raise ValueError(f"MAX_CONCURRENT_CYCLES 값은 1 이상이어야 합니다: {max_concurrent_cycles}")

# 로그 레벨 이름 -> logging 레벨 (잘못된 값은 INFO)
def resolve_log_level(name: str) -> int:
    level = logging.getLevelName((name or "").strip().upper())
    if isinstance(level, int):
        return level
    logger.warning(f"알 수 없는 LOG_LEVEL: {name!r}, INFO 사용")
    return logging.INFO

# 환경변수 검증 실행
validate_working_hours()
validate_polling_settings()

# 전역 설정 인스턴스
config = Config()

# 편의 함수들
def get_postgres_config() -> dict:
    """PostgreSQL 연결 설정 반환"""
    return {
        "host": config.DB_HOST,
        "port": config.DB_PORT,
        "database": config.DB_NAME,
        "user": config.DB_USER,
        "password": config.DB_PASSWORD
    }

def get_telegram_config() -> dict:
    """Telegram 봇 설정 반환"""
    return {
        "bot_token": config.TELEGRAM_BOT_TOKEN,
        "chat_id": config.TELEGRAM_CHAT_ID
    }

def get_proxy_config() -> dict:
    """프록시 템플릿 설정 반환"""
    return {
        "username": config.PROXY_USERNAME,
        "password": config.PROXY_PASSWORD,
        "address": config.PROXY_ADDRESS,
        "port": config.PROXY_PORT
    }

def get_polling_config() -> dict:
    """스케줄러/캘린더 설정 반환"""
    return {
        "poll_interval": config.POLL_INTERVAL,
        "start_hour": config.WORK_START_HOUR,
        "end_hour": config.WORK_END_HOUR,
        "timezone": config.TIMEZONE,
        "max_concurrent_cycles": config.MAX_CONCURRENT_CYCLES
    }
