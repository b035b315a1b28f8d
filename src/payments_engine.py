import copy
import logging
import threading
from typing import Dict, Iterable, Optional

from config import EngineSettings, get_settings
from csv_reader import read_transactions
from message_queue import PartitionedQueue
from models import ClientAccount, ProcessingStats, RejectionReason, Transaction
from state_manager import LedgerStore, TransactionArchive
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Owns the ledger and transaction archive for one run.

    Records are applied with apply() one at a time in input order, or a whole
    file is driven with process_file(). With more than one worker the file is
    fanned out over per-client partitions, which keeps every client's records
    in input order.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self._settings = settings if settings is not None else get_settings()
        self._ledger = LedgerStore()
        self._archive = TransactionArchive()
        self._stats = ProcessingStats()
        self._processor = TransactionProcessor(
            self._ledger,
            self._archive,
            locked_account_policy=self._settings.locked_account_policy,
            stats=self._stats,
        )

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def archive(self) -> TransactionArchive:
        return self._archive

    def apply(self, transaction: Transaction) -> None:
        """Apply one record. Rejected records leave the state untouched."""
        self._processor.process_transaction(transaction)

    def try_apply(self, transaction: Transaction) -> Optional[RejectionReason]:
        """Like apply(), but report why a record was rejected."""
        return self._processor.process_transaction(transaction)

    def snapshot(self) -> Dict[int, ClientAccount]:
        """Copies of all accounts, keyed by client id."""
        return {client_id: copy.copy(account) for client_id, account in self._ledger.accounts().items()}

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply a stream of records and return final account states."""
        if self._settings.num_workers == 1:
            for transaction in transactions:
                self.apply(transaction)
        else:
            self._process_partitioned(transactions)

        logger.info(
            f"Applied: {self._stats.applied}, "
            f"Rejected: {self._stats.rejected}, "
            f"Accounts: {len(self._ledger)}"
        )
        return self.snapshot()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """
        Process CSV file and return final account states.
        Raises OSError if the file cannot be read.
        """
        logger.info(f"Processing {filepath} with {self._settings.num_workers} worker(s)")
        return self.process_transactions(read_transactions(filepath))

    def _process_partitioned(self, transactions: Iterable[Transaction]) -> None:
        # The calling thread publishes, so read errors surface to the caller.
        queue = PartitionedQueue(self._settings.num_workers)

        consumer_threads = []
        for partition in range(queue.num_partitions):
            consumer_thread = threading.Thread(
                target=self._consume_transactions,
                args=(queue, partition),
                name=f"payments-consumer-{partition}",
            )
            consumer_thread.start()
            consumer_threads.append(consumer_thread)

        try:
            for transaction in transactions:
                queue.publish_message(transaction)
        finally:
            queue.shutdown()
            for consumer_thread in consumer_threads:
                consumer_thread.join()

        logger.info("Partitioned processing phase complete")

    def _consume_transactions(self, queue: PartitionedQueue, partition: int) -> None:
        """Consumer loop: pull from one partition and apply in order."""
        while True:
            transaction = queue.consume_message(partition)
            if transaction is None:
                if queue.is_shutdown() and queue.is_empty(partition):
                    break
                continue
            self.apply(transaction)
