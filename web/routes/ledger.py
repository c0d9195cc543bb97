"""
원장 API 라우트

GET  /api/ledger/{account}  - 계정 원장 (최신순) + 현재 잔액
GET  /api/balances          - 현재 잔액
POST /api/rebuild-ledger    - 전체 재구축
GET  /api/ledger-check      - 정합성 점검
"""

from fastapi import APIRouter, Depends, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.constants import Defaults
from core.ledger.errors import LedgerError
from web.dependencies import get_db, get_db_write, get_ledger_config
from web.errors import to_http_exception
from web.models.responses import ApiResponse, BalancesResponse
from web.services.ledger_service import LedgerViewService

router = APIRouter(prefix="/api", tags=["Ledger"])


@router.get("/ledger/{account}", response_model=ApiResponse)
async def get_ledger(
    account: str = Path(..., description="cash 또는 bank"),
    start_date: str | None = Query(default=None),
    end_date: str | None = Query(default=None),
    limit: int = Query(default=Defaults.LIST_LIMIT, ge=1, le=1000),
    db: SQLiteAdapter = Depends(get_db),
) -> ApiResponse:
    """계정 원장 조회 (display_balance == balance_after)"""
    service = LedgerViewService(db)
    try:
        ledger = await service.get_ledger(account, start_date, end_date, limit)
    except LedgerError as e:
        raise to_http_exception(e) from e

    return ApiResponse(data=ledger, count=len(ledger["entries"]))


@router.get("/balances", response_model=BalancesResponse)
async def get_balances(
    db: SQLiteAdapter = Depends(get_db),
) -> BalancesResponse:
    """현재 잔액 조회"""
    service = LedgerViewService(db)
    return BalancesResponse(**await service.get_balances())


@router.post("/rebuild-ledger", response_model=ApiResponse)
async def rebuild_ledger(
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> ApiResponse:
    """전체 원장 재구축 (관리자)"""
    service = LedgerViewService(db, config)
    try:
        result = await service.rebuild_ledger()
    except LedgerError as e:
        raise to_http_exception(e) from e

    return ApiResponse(data=result)


@router.get("/ledger-check", response_model=ApiResponse)
async def check_ledger(
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> ApiResponse:
    """캐시 잔액 / 원장 / 재생 합계 정합성 점검"""
    service = LedgerViewService(db, config)
    try:
        report = await service.check_ledger()
    except LedgerError as e:
        raise to_http_exception(e) from e

    return ApiResponse(data=report)
