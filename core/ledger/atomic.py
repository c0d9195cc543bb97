"""
원자 단위 실행

BEGIN IMMEDIATE 트랜잭션 안에서 작업을 실행하고,
잠금 경합(database is locked / busy) 시 제한된 횟수만큼 처음부터 재시도.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar

import aiosqlite

from core.config.loader import LedgerConfig
from core.ledger.errors import ConflictError

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LOCK_MESSAGES = ("locked", "busy")


def is_lock_error(error: BaseException) -> bool:
    """잠금 경합 오류 여부 (재시도 대상)"""
    if not isinstance(error, aiosqlite.OperationalError):
        return False
    message = str(error).lower()
    return any(token in message for token in _LOCK_MESSAGES)


async def run_atomic(
    db: SQLiteAdapter,
    work: Callable[[], Awaitable[T]],
    config: LedgerConfig | None = None,
    label: str = "atomic",
) -> T:
    """작업을 하나의 원자 단위로 실행

    work는 재시도될 수 있으므로 읽기부터 다시 수행해야 함
    (이전 시도에서 읽은 값 재사용 금지).

    Args:
        db: SQLite 어댑터
        work: 원자 단위 안에서 실행할 코루틴 함수
        config: 재시도 설정 (None이면 기본값)
        label: 로그용 작업 이름

    Returns:
        work의 반환값

    Raises:
        ConflictError: 재시도 횟수 초과
    """
    config = config or LedgerConfig()
    max_attempts = config.max_commit_retries

    for attempt in range(1, max_attempts + 1):
        try:
            async with db.transaction(immediate=True):
                return await work()
        except aiosqlite.OperationalError as e:
            if not is_lock_error(e):
                raise

            logger.warning(
                f"원자 단위 잠금 경합: {label} ({attempt}/{max_attempts})",
                extra={"label": label, "attempt": attempt, "error": str(e)},
            )
            if attempt < max_attempts:
                await asyncio.sleep(config.retry_backoff_ms * attempt / 1000)

    raise ConflictError(
        f"{label}: could not commit after {max_attempts} attempts",
        attempts=max_attempts,
    )
