"""
거래 API 라우트

POST   /api/transactions         - 거래 생성
GET    /api/transactions         - 거래 목록 (void 제외, 최신순)
GET    /api/transactions/{ref}   - 거래 조회 (id 또는 sequence_number)
PUT    /api/transactions/{ref}   - 거래 수정
PATCH  /api/transactions/{ref}   - 거래 수정
DELETE /api/transactions/{ref}   - 거래 삭제
"""

from fastapi import APIRouter, Depends, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.constants import Defaults
from core.ledger.errors import LedgerError
from web.dependencies import get_db, get_db_write, get_ledger_config
from web.errors import to_http_exception
from web.models.requests import TransactionCreateRequest, TransactionUpdateRequest
from web.models.responses import ApiResponse
from web.services.transaction_service import TransactionService

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.post("", response_model=ApiResponse, status_code=201)
async def create_transaction(
    request: TransactionCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> ApiResponse:
    """거래 생성

    - 400: 잘못된 입력 (음수 금액, 알 수 없는 유형 등)
    - 409: 잠금 경합으로 커밋 실패 (재시도 가능)
    """
    service = TransactionService(db, config)
    try:
        result = await service.create_transaction(request.model_dump())
    except LedgerError as e:
        raise to_http_exception(e) from e

    return ApiResponse(data=result, warning=result["warning"])


@router.get("", response_model=ApiResponse)
async def get_transactions(
    kind: str | None = Query(default=None, description="expense/income/transfer"),
    account: str | None = Query(default=None, description="cash/bank (이체 포함)"),
    category: str | None = Query(default=None),
    start_date: str | None = Query(default=None),
    end_date: str | None = Query(default=None),
    limit: int = Query(default=Defaults.LIST_LIMIT, ge=1, le=1000),
    db: SQLiteAdapter = Depends(get_db),
) -> ApiResponse:
    """거래 목록 조회"""
    service = TransactionService(db)
    try:
        transactions = await service.get_transactions(
            kind=kind,
            account=account,
            category=category,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )
    except LedgerError as e:
        raise to_http_exception(e) from e

    return ApiResponse(data=transactions, count=len(transactions))


@router.get("/{ref}", response_model=ApiResponse)
async def get_transaction(
    ref: str = Path(..., description="거래 id 또는 sequence_number"),
    db: SQLiteAdapter = Depends(get_db),
) -> ApiResponse:
    """거래 단건 조회"""
    service = TransactionService(db)
    try:
        transaction = await service.get_transaction(ref)
    except LedgerError as e:
        raise to_http_exception(e) from e

    return ApiResponse(data=transaction)


@router.put("/{ref}", response_model=ApiResponse)
@router.patch("/{ref}", response_model=ApiResponse)
async def update_transaction(
    request: TransactionUpdateRequest,
    ref: str = Path(..., description="거래 id 또는 sequence_number"),
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> ApiResponse:
    """거래 수정

    금융 필드(amount, account, kind, transfer_direction, date)가 바뀌면
    원거래 void + 대체 거래 생성 후 전체 재구축.
    """
    service = TransactionService(db, config)
    try:
        result = await service.update_transaction(ref, request.to_patch())
    except LedgerError as e:
        raise to_http_exception(e) from e

    return ApiResponse(data=result, warning=result["warning"])


@router.delete("/{ref}", response_model=ApiResponse)
async def delete_transaction(
    ref: str = Path(..., description="거래 id 또는 sequence_number"),
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> ApiResponse:
    """거래 영구 삭제 후 전체 재구축"""
    service = TransactionService(db, config)
    try:
        result = await service.delete_transaction(ref)
    except LedgerError as e:
        raise to_http_exception(e) from e

    return ApiResponse(data=result, warning=result["warning"])
