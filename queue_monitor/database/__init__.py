"""
Database 모듈 - 스냅샷 저장소 및 설정 관리
"""
from .config import (
    config,
    get_postgres_config,
    get_telegram_config,
    get_proxy_config,
    get_polling_config
)
from .snapshot_store import (
    get_snapshot_store,
    SnapshotStore,
    StorageUnavailableError,
    PersistenceError
)

# Public API
__all__ = [
    # PostgreSQL
    "get_snapshot_store",
    "SnapshotStore",
    "StorageUnavailableError",
    "PersistenceError",

    # Config
    "config",
    "get_postgres_config",
    "get_telegram_config",
    "get_proxy_config",
    "get_polling_config"
]
