"""
Ledger 예외 → HTTP 오류 변환

- ValidationError → 400
- NotFoundError → 404
- ConflictError → 409 (클라이언트가 전체 요청을 재시도)
"""

from fastapi import HTTPException

from core.ledger.errors import ConflictError, LedgerError, NotFoundError, ValidationError


def to_http_exception(error: LedgerError) -> HTTPException:
    """Ledger 예외를 HTTPException으로 변환"""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, ConflictError):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
