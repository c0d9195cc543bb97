"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (development/production)")
    version: str = Field(..., description="API 버전")


class ApiResponse(BaseModel):
    """공통 응답 봉투

    재구축 실패 시 success=True + warning (거래는 저장됨).
    """

    success: bool = Field(default=True, description="요청 성공 여부")
    data: Any = Field(default=None, description="응답 데이터")
    warning: str | None = Field(default=None, description="부분 실패 경고")
    count: int | None = Field(default=None, description="목록 개수")


class BalancesResponse(BaseModel):
    """현재 잔액"""

    cash: str = Field(..., description="현금 잔액")
    bank: str = Field(..., description="은행 잔액")
    last_updated: str | None = Field(default=None, description="마지막 갱신 시각 (UTC)")
