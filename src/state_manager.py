import threading
from decimal import Decimal
from typing import Dict, Optional

from models import ArchivedTransaction, ClientAccount, DisputeState, TransactionType


class LedgerStore:
    """
    Client id -> account balances.
    Accounts are created lazily and never removed.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

        # Protects insertion into _accounts when partitioned workers create
        # accounts for different clients at the same time.
        self._global_lock = threading.Lock()

    def get_or_create(self, client_id: int) -> ClientAccount:
        """Get existing account or create a zeroed one."""
        with self._global_lock:
            if client_id not in self._accounts:
                self._accounts[client_id] = ClientAccount(client_id=client_id)
            return self._accounts[client_id]

    def account_for(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        with self._global_lock:
            return dict(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)


class TransactionArchive:
    """
    Transaction id -> archived deposit/withdrawal for dispute lookups.
    Stores only; dispute transition rules live in TransactionProcessor.
    """

    def __init__(self):
        self._transactions: Dict[int, ArchivedTransaction] = {}
        self._lock = threading.Lock()

    def record(self, transaction_id: int, client_id: int, kind: TransactionType, amount: Decimal) -> bool:
        """
        Archive a newly applied transaction.
        Returns False without touching the archive if the id is already taken.
        """
        with self._lock:
            if transaction_id in self._transactions:
                return False
            self._transactions[transaction_id] = ArchivedTransaction(
                transaction_id=transaction_id,
                client_id=client_id,
                amount=amount,
                kind=kind,
            )
            return True

    def lookup(self, transaction_id: int) -> Optional[ArchivedTransaction]:
        return self._transactions.get(transaction_id)

    def set_dispute_state(self, transaction_id: int, state: DisputeState) -> None:
        self._transactions[transaction_id].dispute_state = state

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def __len__(self) -> int:
        return len(self._transactions)
