"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
금액/유형/날짜 값 검증은 core.ledger에서 수행 (ValidationError → 400).
"""

from typing import Any

from pydantic import BaseModel, Field


class TransactionCreateRequest(BaseModel):
    """거래 생성 요청"""

    date: str | None = Field(default=None, description="업무 날짜 (YYYY-MM-DD 또는 DD/MM/YYYY)")
    kind: str | None = Field(default=None, description="거래 유형 (expense/income/transfer)")
    amount: str | float | int | None = Field(default=None, description="금액 (양수)")
    account: str | None = Field(default=None, description="계정 (cash/bank, 이체는 생략)")
    transfer_direction: str | None = Field(
        default=None, description="이체 방향 (withdrawal/deposit, 이체만 해당)"
    )
    description: str = Field(default="", description="설명")
    category: str | None = Field(default=None, description="카테고리")
    subcategory: str | None = Field(default=None, description="하위 카테고리")
    payment_method: str | None = Field(default=None, description="결제 수단")
    metadata: dict[str, Any] = Field(default_factory=dict, description="추가 정보")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "date": "2025-01-05",
                    "kind": "expense",
                    "amount": "100",
                    "account": "cash",
                    "description": "사무용품",
                },
                {
                    "date": "2025-01-06",
                    "kind": "transfer",
                    "transfer_direction": "deposit",
                    "amount": "20",
                },
            ]
        }
    }


class TransactionUpdateRequest(BaseModel):
    """거래 수정 요청

    보낸 필드만 수정. 수정 불가 필드는 core에서 거부 (400).
    """

    model_config = {"extra": "allow"}

    def to_patch(self) -> dict[str, Any]:
        """명시적으로 전달된 필드만 dict로 반환"""
        return self.model_dump(exclude_unset=True)


class ImportDataRequest(BaseModel):
    """백업 가져오기 요청"""

    data: dict[str, Any] = Field(..., description="export-data 결과 (version, transactions)")
    merge_mode: str = Field(
        default="replace",
        alias="mergeMode",
        description="replace: 전체 대체, merge: 없는 거래만 추가",
    )

    model_config = {"populate_by_name": True}
