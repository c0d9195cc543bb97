"""
State Machines

거래(Transaction) 생명주기 상태 전이 관리.

    ACTIVE → ACTIVE   : 비금융 필드 제자리 수정
    ACTIVE → VOIDED   : 수정(void + 역분개 + 재생성)
    ACTIVE → DELETED  : 영구 삭제

VOIDED, DELETED는 종료 상태. void된 거래는 로그에 남지만 재생되지 않음.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """상태 전이 오류"""
    pass


class TransactionState(str, Enum):
    """거래 상태"""
    ACTIVE = "ACTIVE"
    VOIDED = "VOIDED"
    DELETED = "DELETED"


class TransactionStateMachine:
    """거래 상태 머신

    Args:
        initial_state: 초기 상태 (저장된 거래의 현재 상태)
    """

    TRANSITIONS: dict[TransactionState, frozenset[TransactionState]] = {
        TransactionState.ACTIVE: frozenset({
            TransactionState.ACTIVE,
            TransactionState.VOIDED,
            TransactionState.DELETED,
        }),
        TransactionState.VOIDED: frozenset(),
        TransactionState.DELETED: frozenset(),
    }

    def __init__(self, initial_state: str | TransactionState = TransactionState.ACTIVE):
        self._state = TransactionState(initial_state)

    @property
    def state(self) -> TransactionState:
        """현재 상태"""
        return self._state

    def can_transition(self, to_state: str | TransactionState) -> bool:
        """전이 가능 여부 확인"""
        return TransactionState(to_state) in self.TRANSITIONS[self._state]

    def transition(self, to_state: str | TransactionState) -> TransactionState:
        """상태 전이

        Raises:
            StateMachineError: 종료 상태에서의 전이 등 허용되지 않은 전이
        """
        target = TransactionState(to_state)

        if not self.can_transition(target):
            allowed = sorted(s.value for s in self.TRANSITIONS[self._state])
            raise StateMachineError(
                f"Transaction: Cannot transition from {self._state.value} to "
                f"{target.value}. Allowed: {allowed}"
            )

        old_state = self._state
        self._state = target

        logger.debug(f"Transaction: {old_state.value} → {target.value}")

        return target
