"""
Ledger 예외 정의

- ValidationError: 잘못된 입력 (재시도 금지, 즉시 반환)
- ConflictError: 원자 단위 커밋 실패 (전체 작업을 처음부터 재시도 가능)
- NotFoundError: 거래 참조를 찾을 수 없음
- RebuildError: 쓰기 성공 후 재구축 실패 (경고로 보고)
"""


class LedgerError(Exception):
    """Ledger 예외 기본 클래스"""
    pass


class ValidationError(LedgerError):
    """입력 검증 실패

    음수 금액, 알 수 없는 kind/direction, 필수 필드 누락 등.
    """
    pass


class ConflictError(LedgerError):
    """원자 단위가 경합으로 커밋되지 못함

    Args:
        message: 오류 메시지
        attempts: 시도 횟수
    """

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class NotFoundError(LedgerError):
    """거래 참조(id 또는 sequence_number)를 찾을 수 없음"""

    def __init__(self, ref: str):
        super().__init__(f"Transaction not found: {ref}")
        self.ref = ref


class RebuildError(LedgerError):
    """거래 쓰기 이후 원장 재구축 실패

    거래 기록 자체는 안전하게 저장된 상태.
    잔액/원장은 다음 재구축 전까지 오래된 값일 수 있음.
    """
    pass
