"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web 요청과 관리 스크립트가 동시에 접근 가능하도록 설정.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import asyncio
import contextvars
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Paths
from core.types import AppMode

logger = logging.getLogger(__name__)

# 현재 실행 흐름이 열어 둔 transaction()의 어댑터 id 집합
_active_units: contextvars.ContextVar[frozenset[int]] = contextvars.ContextVar(
    "sqlite_active_units", default=frozenset()
)


def get_db_path(mode: AppMode | str) -> Path:
    """모드에 따른 DB 경로 반환

    Args:
        mode: 실행 모드 (PRODUCTION/DEVELOPMENT)

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if isinstance(mode, str):
        mode = AppMode(mode.lower())

    if mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    return Paths.DEV_DB


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(db_path_str)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    같은 어댑터(연결)를 공유하는 코루틴끼리는 transaction()과
    단위 밖의 execute/fetch*가 같은 asyncio.Lock으로 직렬화됨.
    서로 다른 연결 사이의 격리는 BEGIN IMMEDIATE(쓰기 잠금)로 보장.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (Web 조회용)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction(immediate=True):
        row = await adapter.fetchone("SELECT ...")
        await adapter.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._tx_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """현재 실행 흐름(Task)이 이 어댑터의 transaction() 안에 있는지"""
        return id(self) in _active_units.get()

    @asynccontextmanager
    async def _guard(self) -> AsyncIterator[None]:
        """단위 밖의 단일 실행은 다른 코루틴의 열린 단위가 끝날 때까지 대기

        같은 연결을 공유하므로 잠금 없이 읽으면 커밋 전 중간 상태가 보임.
        단위를 연 실행 흐름 자신은 그대로 통과 (asyncio.Lock은 재진입 불가).
        """
        if self.in_transaction:
            yield
            return

        async with self._tx_lock:
            yield

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def _execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        conn = self._require_conn()
        if parameters:
            return await conn.execute(sql, parameters)
        return await conn.execute(sql)

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        self._require_conn()
        async with self._guard():
            return await self._execute(sql, parameters)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        conn = self._require_conn()
        async with self._guard():
            return await conn.executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        self._require_conn()
        async with self._guard():
            cursor = await self._execute(sql, parameters)
            return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        self._require_conn()
        async with self._guard():
            cursor = await self._execute(sql, parameters)
            return list(await cursor.fetchall())

    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            async with self._guard():
                await self._conn.commit()

    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            async with self._guard():
                await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외 시 자동 롤백.
        단위가 열려 있는 동안 다른 코루틴의 execute/fetch*는 커밋(롤백)까지 대기.

        Args:
            immediate: True면 BEGIN IMMEDIATE로 시작하여 읽기 전에 쓰기 잠금 획득.
                읽은 값을 기반으로 쓰는 원자 단위(잔액 읽기 → 기록)에 사용.

        사용 예시:
        ```python
        async with adapter.transaction(immediate=True):
            await adapter.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        conn = self._require_conn()

        async with self._tx_lock:
            token = _active_units.set(_active_units.get() | {id(self)})
            try:
                if immediate:
                    await conn.execute("BEGIN IMMEDIATE")
                try:
                    yield conn
                    await conn.commit()
                except BaseException:
                    await conn.rollback()
                    raise
            finally:
                _active_units.reset(token)

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    async def get_table_info(self, table_name: str) -> list[dict[str, Any]]:
        """테이블 정보 조회"""
        rows = await self.fetchall(f"PRAGMA table_info({table_name})")

        columns = []
        for row in rows:
            columns.append({
                "cid": row[0],
                "name": row[1],
                "type": row[2],
                "notnull": bool(row[3]),
                "default_value": row[4],
                "pk": bool(row[5]),
            })

        return columns

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    transactions(원본 로그), ledger_entries(파생 원장),
    account_balances(파생 잔액 캐시), transaction_sequences(연도별 번호).

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    # transactions (진실의 원천)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id                 TEXT PRIMARY KEY,
            sequence_number    TEXT NOT NULL UNIQUE,
            date               TEXT NOT NULL,
            created_at         TEXT,

            kind               TEXT NOT NULL,
            transfer_direction TEXT,
            account            TEXT,
            amount             TEXT NOT NULL,

            description        TEXT NOT NULL DEFAULT '',
            category           TEXT,
            subcategory        TEXT,
            payment_method     TEXT,
            metadata_json      TEXT NOT NULL DEFAULT '{}',

            voided             INTEGER NOT NULL DEFAULT 0,
            void_reason        TEXT,
            voided_at          TEXT,
            supersedes         TEXT,
            superseded_by      TEXT,
            updated_at         TEXT
        )
    """)

    # ledger_entries (파생, 계정 단위로 삭제 후 재생성)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS ledger_entries (
            entry_id                INTEGER PRIMARY KEY AUTOINCREMENT,
            transaction_id          TEXT NOT NULL,
            account                 TEXT NOT NULL,
            change_amount           TEXT NOT NULL,
            balance_before          TEXT NOT NULL,
            balance_after           TEXT NOT NULL,
            date                    TEXT NOT NULL,
            sequence                INTEGER,
            ts                      TEXT,
            entry_type              TEXT NOT NULL,
            original_transaction_id TEXT,

            description             TEXT,
            kind                    TEXT,
            transfer_direction      TEXT,
            payment_method          TEXT
        )
    """)

    # account_balances (파생 캐시)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS account_balances (
            account             TEXT PRIMARY KEY,
            current_balance     TEXT NOT NULL DEFAULT '0',
            last_transaction_id TEXT,
            transaction_count   INTEGER NOT NULL DEFAULT 0,
            last_updated        TEXT
        )
    """)

    # transaction_sequences (연도별 거래 번호)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS transaction_sequences (
            year           INTEGER PRIMARY KEY,
            next_sequence  INTEGER NOT NULL DEFAULT 1,
            last_used      TEXT
        )
    """)

    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_order
        ON transactions(date, created_at)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_kind
        ON transactions(kind)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_ledger_entries_account
        ON ledger_entries(account, date, sequence)
    """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
