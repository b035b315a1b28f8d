import logging
from typing import Optional, Tuple

from models import (
    ArchivedTransaction,
    DisputeState,
    LockedAccountPolicy,
    ProcessingStats,
    RejectionReason,
    Transaction,
    TransactionType,
)
from state_manager import LedgerStore, TransactionArchive

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to the ledger and archive.

    Every record goes through a side-effect free validation step first; the
    stores are only touched once it passes, so a rejected record never leaves
    partial state behind. Callers must feed records for one client in input
    order and from a single thread.
    """

    def __init__(
        self,
        ledger: LedgerStore,
        archive: TransactionArchive,
        locked_account_policy: LockedAccountPolicy = LockedAccountPolicy.ACCEPT,
        stats: Optional[ProcessingStats] = None,
    ):
        self._ledger = ledger
        self._archive = archive
        self._locked_account_policy = locked_account_policy
        self._stats = stats if stats is not None else ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_transaction(self, transaction: Transaction) -> Optional[RejectionReason]:
        """
        Process a single transaction.

        Returns None when the transaction was applied, otherwise the reason it
        was rejected. Rejection is never an error for the run as a whole.
        """
        reason = self.validate(transaction)
        if reason is None:
            reason = self._apply(transaction)

        if reason is None:
            self._stats.record_applied()
        else:
            logger.debug(f"Rejected {transaction}: {reason.value}")
            self._stats.record_rejection(reason)
        return reason

    def validate(self, transaction: Transaction) -> Optional[RejectionReason]:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._validate_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                return self._validate_withdrawal(transaction)
            case TransactionType.DISPUTE:
                return self._validate_dispute(transaction)
            case TransactionType.RESOLVE | TransactionType.CHARGEBACK:
                return self._validate_settlement(transaction)

    def _validate_amount(self, transaction: Transaction) -> Optional[RejectionReason]:
        if transaction.amount is None:
            return RejectionReason.MISSING_AMOUNT
        if transaction.amount < 0:
            return RejectionReason.NEGATIVE_AMOUNT
        if transaction.transaction_id in self._archive:
            return RejectionReason.DUPLICATE_TRANSACTION
        return None

    def _rejects_locked(self, client_id: int) -> bool:
        if self._locked_account_policy is LockedAccountPolicy.ACCEPT:
            return False
        account = self._ledger.account_for(client_id)
        return account is not None and account.locked

    def _validate_deposit(self, transaction: Transaction) -> Optional[RejectionReason]:
        reason = self._validate_amount(transaction)
        if reason is not None:
            return reason
        if self._rejects_locked(transaction.client_id):
            return RejectionReason.ACCOUNT_LOCKED
        return None

    def _validate_withdrawal(self, transaction: Transaction) -> Optional[RejectionReason]:
        reason = self._validate_amount(transaction)
        if reason is not None:
            return reason

        account = self._ledger.account_for(transaction.client_id)
        if account is None:
            return RejectionReason.UNKNOWN_ACCOUNT
        if self._rejects_locked(transaction.client_id):
            return RejectionReason.ACCOUNT_LOCKED
        if account.available < transaction.amount:
            return RejectionReason.INSUFFICIENT_FUNDS
        return None

    def _lookup_own(self, transaction: Transaction) -> Tuple[Optional[ArchivedTransaction], Optional[RejectionReason]]:
        original = self._archive.lookup(transaction.transaction_id)
        if original is None:
            return None, RejectionReason.UNKNOWN_TRANSACTION
        if original.client_id != transaction.client_id:
            return None, RejectionReason.CLIENT_MISMATCH
        return original, None

    def _validate_dispute(self, transaction: Transaction) -> Optional[RejectionReason]:
        original, reason = self._lookup_own(transaction)
        if reason is not None:
            return reason
        if self._rejects_locked(transaction.client_id):
            return RejectionReason.ACCOUNT_LOCKED
        if original.dispute_state is not DisputeState.NORMAL:
            return RejectionReason.ALREADY_DISPUTED
        return None

    def _validate_settlement(self, transaction: Transaction) -> Optional[RejectionReason]:
        # Resolve and chargeback still settle open disputes on locked accounts.
        original, reason = self._lookup_own(transaction)
        if reason is not None:
            return reason
        if original.dispute_state is not DisputeState.DISPUTED:
            return RejectionReason.NOT_DISPUTED
        return None

    def _apply(self, transaction: Transaction) -> Optional[RejectionReason]:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT | TransactionType.WITHDRAWAL:
                return self._apply_movement(transaction)
            case TransactionType.DISPUTE:
                self._apply_dispute(transaction)
            case TransactionType.RESOLVE:
                self._apply_resolve(transaction)
            case TransactionType.CHARGEBACK:
                self._apply_chargeback(transaction)
        return None

    def _apply_movement(self, transaction: Transaction) -> Optional[RejectionReason]:
        # Claim the id before moving money: another worker may have taken it
        # since validation ran.
        claimed = self._archive.record(
            transaction.transaction_id,
            transaction.client_id,
            transaction.transaction_type,
            transaction.amount,
        )
        if not claimed:
            return RejectionReason.DUPLICATE_TRANSACTION

        account = self._ledger.get_or_create(transaction.client_id)
        if transaction.transaction_type is TransactionType.DEPOSIT:
            account.credit(transaction.amount)
        else:
            account.debit(transaction.amount)
        return None

    def _apply_dispute(self, transaction: Transaction) -> None:
        original = self._archive.lookup(transaction.transaction_id)
        account = self._ledger.get_or_create(original.client_id)
        account.hold(original.amount)
        self._archive.set_dispute_state(original.transaction_id, DisputeState.DISPUTED)

    def _apply_resolve(self, transaction: Transaction) -> None:
        original = self._archive.lookup(transaction.transaction_id)
        account = self._ledger.get_or_create(original.client_id)
        account.release_hold(original.amount)
        self._archive.set_dispute_state(original.transaction_id, DisputeState.RESOLVED)

    def _apply_chargeback(self, transaction: Transaction) -> None:
        original = self._archive.lookup(transaction.transaction_id)
        account = self._ledger.get_or_create(original.client_id)
        account.remove_held(original.amount)
        account.lock()
        self._archive.set_dispute_state(original.transaction_id, DisputeState.CHARGED_BACK)
