import threading
from collections import Counter
from dataclasses import dataclass
from decimal import Context, Decimal, localcontext
from enum import Enum
from typing import Dict, Optional


MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

# Largest accepted amount magnitude and fractional digits (96-bit mantissa, scale 28)
MAX_AMOUNT = Decimal(2**96 - 1)
MAX_AMOUNT_SCALE = 28

# Balances of bounded amounts summed over every possible tx id stay well
# under 100 significant digits, so account arithmetic is exact.
LEDGER_CONTEXT = Context(prec=100)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class LockedAccountPolicy(Enum):
    """What happens to deposits, withdrawals and disputes once an account is locked."""

    ACCEPT = "accept"
    REJECT = "reject"


class RejectionReason(Enum):
    MISSING_AMOUNT = "missing_amount"
    NEGATIVE_AMOUNT = "negative_amount"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    UNKNOWN_ACCOUNT = "unknown_account"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    CLIENT_MISMATCH = "client_mismatch"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"
    ACCOUNT_LOCKED = "account_locked"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ArchivedTransaction:
    """
    Facts about an applied deposit or withdrawal, kept for later disputes.
    Only dispute_state ever changes after creation.
    """

    transaction_id: int
    client_id: int
    amount: Decimal
    kind: TransactionType
    dispute_state: DisputeState = DisputeState.NORMAL


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        with localcontext(LEDGER_CONTEXT):
            return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            self.available += amount

    def debit(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            self.available -= amount

    def hold(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            self.available -= amount
            self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            self.held -= amount
            self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            self.held -= amount

    def lock(self) -> None:
        self.locked = True


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.applied = 0
        self.rejected = 0
        self._reasons: Counter = Counter()

    def record_applied(self):
        with self._lock:
            self.applied += 1

    def record_rejection(self, reason: RejectionReason):
        with self._lock:
            self.rejected += 1
            self._reasons[reason] += 1

    def rejections_by_reason(self) -> Dict[RejectionReason, int]:
        with self._lock:
            return dict(self._reasons)

    def __repr__(self) -> str:
        return f"ProcessingStats(applied={self.applied}, rejected={self.rejected})"
