from __future__ import annotations

from pathlib import Path

import duckdb

from mediconnect.core.config import get_settings

_EVENT_COLUMNS = (
    "timestamp",
    "level",
    "event",
    "patient_id",
    "stage",
    "error_code",
    "message",
    "duration_ms",
    "record_count",
)


class TelemetryStore:
    """환자 작업 이벤트를 저장하는 DuckDB 텔레메트리 저장소"""

    _instance: "TelemetryStore | None" = None

    def __new__(cls) -> "TelemetryStore":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_db()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """싱글턴 연결을 닫고 초기화 (설정 변경 후 재연결용)"""
        if cls._instance is not None:
            cls._instance._conn.close()
        cls._instance = None

    def _init_db(self) -> None:
        settings = get_settings()
        if settings.duckdb_path != ":memory:":
            Path(settings.duckdb_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(settings.duckdb_path)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS events (
                timestamp TIMESTAMP,
                level VARCHAR,
                event VARCHAR,
                patient_id VARCHAR,
                stage VARCHAR,
                error_code VARCHAR,
                message VARCHAR,
                duration_ms INTEGER,
                record_count INTEGER
            )
            """
        )

    def insert_event(self, record: dict) -> None:
        """이벤트 레코드를 저장

        Args:
            record: 이벤트 레코드 딕셔너리
        """
        placeholders = ", ".join(["?"] * len(_EVENT_COLUMNS))
        self._conn.execute(
            f"INSERT INTO events ({', '.join(_EVENT_COLUMNS)}) VALUES ({placeholders})",
            [record.get(column) for column in _EVENT_COLUMNS],
        )

    def query_events(self, where: str = "", params: list | None = None) -> list[dict]:
        """조건절(WHERE)을 사용해 이벤트를 조회

        Args:
            where: SQL WHERE 절
            params: 파라미터 목록

        Returns:
            컬럼명을 키로 하는 행 목록 (삽입순)
        """
        query = f"SELECT {', '.join(_EVENT_COLUMNS)} FROM events"
        if where:
            query += f" WHERE {where}"
        query += " ORDER BY rowid"
        rows = self._conn.execute(query, params or []).fetchall()
        return [dict(zip(_EVENT_COLUMNS, row)) for row in rows]
