"""
State machines for redemption and ledger entry status transitions
"""

from enum import Enum
from typing import Dict, Generic, List, Set, TypeVar

from app.core.exceptions import InvalidStateException
from app.models.coin_transaction import TransactionStatus
from app.models.redemption import RedemptionStatus

S = TypeVar("S", bound=Enum)

class StateMachine(Generic[S]):
    """
    Closed table of allowed status transitions
    """

    def __init__(self, entity: str, transitions: Dict[S, Set[S]]):
        self.entity = entity
        self.transitions = transitions

    def can_transition(self, current_status: S, new_status: S) -> bool:
        """
        Check if transition is valid

        Args:
            current_status: Current status
            new_status: Desired new status

        Returns:
            True if transition is allowed
        """
        return new_status in self.transitions.get(current_status, set())

    def ensure_transition(self, current_status: S, new_status: S) -> None:
        """Raise InvalidStateException unless the transition is allowed"""
        if not self.can_transition(current_status, new_status):
            raise InvalidStateException(
                self.entity,
                getattr(current_status, "value", str(current_status)),
                getattr(new_status, "value", str(new_status)),
            )

    def get_valid_transitions(self, current_status: S) -> List[S]:
        """Get list of valid next statuses"""
        return list(self.transitions.get(current_status, set()))

    def is_terminal_state(self, status: S) -> bool:
        """True if no more transitions are possible"""
        return len(self.transitions.get(status, set())) == 0

redemption_state_machine: StateMachine[RedemptionStatus] = StateMachine(
    "redemption",
    {
        RedemptionStatus.PENDING: {
            RedemptionStatus.APPROVED,
            RedemptionStatus.REJECTED,
        },
        RedemptionStatus.APPROVED: {
            RedemptionStatus.ISSUED,
        },
        RedemptionStatus.REJECTED: set(),  # Terminal state
        RedemptionStatus.ISSUED: set(),  # Terminal state
    },
)

transaction_state_machine: StateMachine[TransactionStatus] = StateMachine(
    "transaction",
    {
        TransactionStatus.PENDING: {
            TransactionStatus.APPROVED,
            TransactionStatus.REJECTED,
        },
        TransactionStatus.APPROVED: set(),
        TransactionStatus.REJECTED: set(),
    },
)
