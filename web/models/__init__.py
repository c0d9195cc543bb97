"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    ImportDataRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
)
from web.models.responses import (
    ApiResponse,
    BalancesResponse,
    HealthResponse,
)

__all__ = [
    # Requests
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "ImportDataRequest",
    # Responses
    "ApiResponse",
    "BalancesResponse",
    "HealthResponse",
]
