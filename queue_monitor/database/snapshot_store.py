import psycopg2
import psycopg2.extras # RealDictCursor : 결과가 딕셔너리로 나옴 -> 컬럼명으로 접근 가능
from psycopg2.pool import ThreadedConnectionPool  # 여러 사이클 스레드가 공유하는 연결 풀
import json
import logging
from typing import List, Optional
from datetime import datetime
from .config import get_postgres_config
from ..monitor.models import MonitoredStream, QueueObservation, SnapshotRecord

logger = logging.getLogger(__name__)

COLUMNS = (
    "queue_id", "name", "location", "ticket_count", "tickets_served", "workplaces",
    "average_wait_time", "average_service_time", "registered_tickets", "max_tickets",
    "ticket_value", "active", "tickets_left", "enabled", "operations"
)

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
    id SERIAL PRIMARY KEY,
    queue_id INTEGER,
    name VARCHAR(255),
    location VARCHAR(100),
    ticket_count INTEGER,
    tickets_served INTEGER,
    workplaces INTEGER,
    average_wait_time INTEGER,
    average_service_time INTEGER,
    registered_tickets INTEGER,
    max_tickets INTEGER,
    ticket_value VARCHAR(255),
    active BOOLEAN,
    tickets_left INTEGER,
    enabled BOOLEAN,
    operations JSONB,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_{table}_created_at ON {table}(created_at);
CREATE INDEX IF NOT EXISTS idx_{table}_location ON {table}(location);
"""


class StorageUnavailableError(Exception):
    """DB 연결 불가 (시작 시 치명적)"""


class PersistenceError(Exception):
    """관측값 1건 저장 실패"""


def serialize_operations(observation: QueueObservation) -> str:
    """operations -> JSONB 컬럼용 JSON 문자열, 실패 시 PersistenceError"""
    try:
        return json.dumps(observation.operations_as_dicts(), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"operations 직렬화 실패: {e}") from e


class SnapshotStore:
    def __init__(self, host: str, port: int, user: str, password: str, database: str,
                 minconn: int = 1, maxconn: int = 10):
        """스냅샷 저장소 초기화 (연결은 open()에서)"""
        self.connection_params = {
            "host": host,
            "port": port,
            "user": user,
            "password": password,
            "database": database
        }
        self.minconn = minconn
        self.maxconn = maxconn
        self.connection_pool = None

    def open(self) -> None:
        """PostgreSQL 연결 풀 생성 및 연결 확인"""
        try:
            self.connection_pool = ThreadedConnectionPool(
                minconn=self.minconn,
                maxconn=self.maxconn,
                **self.connection_params
            )
            self.execute_query("SELECT 1 AS ok")
            logger.info("PostgreSQL 연결 풀 초기화 완료")
        except psycopg2.Error as e:
            logger.error(f"PostgreSQL 연결 풀 초기화 실패: {e}")
            self.close()
            raise StorageUnavailableError(str(e)) from e

    def close(self) -> None:
        """PostgreSQL 연결 종료"""
        if self.connection_pool:
            try:
                self.connection_pool.closeall()
                logger.info("PostgreSQL 연결 종료 완료")
            except psycopg2.Error as e:
                logger.error(f"PostgreSQL 연결 종료 실패: {e}")
            self.connection_pool = None

    def __enter__(self) -> "SnapshotStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get_connection(self):
        if not self.connection_pool:
            raise StorageUnavailableError("PostgreSQL 연결 풀이 초기화되지 않음")
        return self.connection_pool.getconn()

    def _return_connection(self, conn):
        if self.connection_pool and conn:
            self.connection_pool.putconn(conn)

    def health_check(self) -> dict:
        """데이터베이스 연결 상태 확인"""
        safe_info = {k: v for k, v in self.connection_params.items() if k != "password"}
        try:
            rows = self.execute_query("SELECT 1 AS ok")
            return {
                "is_connected": bool(rows) and rows[0]["ok"] == 1,
                "connection_info": safe_info,
                "checked_at": datetime.now().isoformat()
            }
        except Exception as e:
            logger.error(f"PostgreSQL 헬스체크 실패: {e}")
            return {
                "is_connected": False,
                "connection_info": safe_info,
                "error": str(e),
                "checked_at": datetime.now().isoformat()
            }

    def ensure_schema(self) -> None:
        """스트림별 테이블 및 인덱스 생성 (없을 때만)"""
        for stream in MonitoredStream:
            self.execute_query(CREATE_TABLE_SQL.format(table=stream.table_name))
        logger.info("스냅샷 테이블 및 인덱스 생성 완료")

    def insert(self, stream: MonitoredStream, observation: QueueObservation) -> None:
        """
        관측값 1건을 스트림 테이블에 추가 (append-only)
        - operations는 JSON으로 직렬화해 JSONB 컬럼에 저장
        """
        operations_json = serialize_operations(observation)
        query = f"""
        INSERT INTO {stream.table_name} ({", ".join(COLUMNS)})
        VALUES ({", ".join(f"%({c})s" for c in COLUMNS)})
        """
        params = {
            "queue_id": observation.category_id,
            "name": observation.category_name,
            "location": observation.location,
            "ticket_count": observation.ticket_count,
            "tickets_served": observation.tickets_served,
            "workplaces": observation.workplaces,
            "average_wait_time": observation.average_wait_time,
            "average_service_time": observation.average_service_time,
            "registered_tickets": observation.registered_tickets,
            "max_tickets": observation.max_tickets,
            "ticket_value": observation.ticket_value,
            "active": observation.active,
            "tickets_left": observation.tickets_left,
            "enabled": observation.enabled,
            "operations": operations_json
        }
        try:
            self.execute_query(query, params)
        except (psycopg2.Error, StorageUnavailableError) as e:
            raise PersistenceError(f"{stream.table_name} 저장 실패: {e}") from e

    def latest_snapshot(self, stream: MonitoredStream, category_id: int, location: str) -> Optional[SnapshotRecord]:
        """(queue_id, location)의 가장 최근 행 - 같은 시각이면 id가 큰 행"""
        query = f"""
        SELECT id, created_at, {", ".join(COLUMNS)}
        FROM {stream.table_name}
        WHERE queue_id = %s AND location = %s
        ORDER BY created_at DESC, id DESC
        LIMIT 1
        """
        rows = self.execute_query(query, (category_id, location))
        if not rows:
            return None
        return SnapshotRecord.from_row(rows[0])

    def latest_tickets_left(self, category_id: int, location: str,
                            stream: MonitoredStream = MonitoredStream.CARD_PICKUP) -> Optional[int]:
        """직전 tickets_left 조회, 기록이 없으면 None"""
        query = f"""
        SELECT tickets_left
        FROM {stream.table_name}
        WHERE queue_id = %s AND location = %s
        ORDER BY created_at DESC, id DESC
        LIMIT 1
        """
        rows = self.execute_query(query, (category_id, location))
        if not rows:
            return None
        return rows[0]["tickets_left"]

    def execute_query(self, query: str, params=None) -> List[dict]:
        """SQL 쿼리 실행하고 결과 반환"""
        conn = None
        cursor = None
        try:
            conn = self._get_connection()
            cursor = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            if params:
                cursor.execute(query, params)
            else:
                cursor.execute(query)
            # SELECT 쿼리인 경우 결과 반환
            if query.strip().upper().startswith('SELECT'):
                results = cursor.fetchall()
                return [dict(row) for row in results]
            else:
                # INSERT, CREATE 등의 경우
                conn.commit()
                return []
        except psycopg2.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"쿼리 실행 실패: {e}")
            raise
        finally:
            if cursor:
                cursor.close()
            if conn:
                self._return_connection(conn)


def get_snapshot_store() -> SnapshotStore:
    """설정 기반 SnapshotStore 생성 (open은 호출자가)"""
    return SnapshotStore(**get_postgres_config())
