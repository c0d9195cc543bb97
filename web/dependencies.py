"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from typing import AsyncGenerator

from fastapi import Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig, Settings, get_settings


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


def get_ledger_config(settings: Settings = Depends(get_app_settings)) -> LedgerConfig:
    """Ledger 엔진 설정 반환 (재시도, 배치 크기)"""
    return settings.ledger


async def get_db(
    settings: Settings = Depends(get_app_settings),
) -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    거래/원장/잔액 조회용.
    """
    async with SQLiteAdapter(settings.db_path, readonly=True) as db:
        yield db


async def get_db_write(
    settings: Settings = Depends(get_app_settings),
) -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    거래 생성/수정/삭제, 재구축, 백업 복원 시 사용.
    """
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db
