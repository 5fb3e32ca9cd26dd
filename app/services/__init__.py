"""Services package"""

from .ledger import LedgerStore
from .balance import BalanceService
from .audit_service import AuditService
from .redemption_service import RedemptionService
from .transaction_service import TransactionService
from .invite_service import InviteService
from .state_machine import StateMachine, redemption_state_machine, transaction_state_machine

__all__ = [
    "LedgerStore",
    "BalanceService",
    "AuditService",
    "RedemptionService",
    "TransactionService",
    "InviteService",
    "StateMachine",
    "redemption_state_machine",
    "transaction_state_machine",
]
