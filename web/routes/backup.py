"""
백업 API 라우트

POST /api/export-data - 거래 로그 내보내기
POST /api/import-data - 거래 로그 가져오기 + 전체 재구축
"""

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger.errors import LedgerError
from web.dependencies import get_db, get_db_write, get_ledger_config
from web.errors import to_http_exception
from web.models.requests import ImportDataRequest
from web.models.responses import ApiResponse
from web.services.ledger_service import LedgerViewService

router = APIRouter(prefix="/api", tags=["Backup"])


@router.post("/export-data", response_model=ApiResponse)
async def export_data(
    db: SQLiteAdapter = Depends(get_db),
) -> ApiResponse:
    """거래 로그 내보내기 (void 포함)"""
    service = LedgerViewService(db)
    export = await service.export_data()
    return ApiResponse(data=export, count=len(export["transactions"]))


@router.post("/import-data", response_model=ApiResponse)
async def import_data(
    request: ImportDataRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> ApiResponse:
    """거래 로그 가져오기

    - replace: 기존 로그를 백업으로 대체
    - merge: 없는 거래만 추가
    """
    service = LedgerViewService(db, config)
    try:
        result = await service.import_data(request.data, request.merge_mode)
    except LedgerError as e:
        raise to_http_exception(e) from e

    return ApiResponse(data=result, warning=result["warning"])
