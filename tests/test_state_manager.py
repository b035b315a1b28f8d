import sys
import os
import threading
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import DisputeState, TransactionType
from state_manager import LedgerStore, TransactionArchive


class TestLedgerStore:
    def test_get_or_create_is_idempotent(self):
        ledger = LedgerStore()
        first = ledger.get_or_create(1)
        first.credit(Decimal("5"))

        assert ledger.get_or_create(1) is first
        assert ledger.get_or_create(1).available == Decimal("5")
        assert len(ledger) == 1

    def test_account_for_does_not_create(self):
        ledger = LedgerStore()
        assert ledger.account_for(1) is None
        assert len(ledger) == 0

    def test_accounts_returns_copy_of_mapping(self):
        ledger = LedgerStore()
        ledger.get_or_create(1)
        accounts = ledger.accounts()
        accounts.pop(1)

        assert ledger.account_for(1) is not None


class TestTransactionArchive:
    def test_record_and_lookup(self):
        archive = TransactionArchive()
        assert archive.record(1, 7, TransactionType.DEPOSIT, Decimal("2.5"))

        archived = archive.lookup(1)
        assert archived.client_id == 7
        assert archived.amount == Decimal("2.5")
        assert archived.kind == TransactionType.DEPOSIT
        assert archived.dispute_state == DisputeState.NORMAL
        assert 1 in archive

    def test_record_duplicate_is_noop(self):
        archive = TransactionArchive()
        archive.record(1, 7, TransactionType.DEPOSIT, Decimal("2.5"))

        assert not archive.record(1, 8, TransactionType.WITHDRAWAL, Decimal("9"))
        assert archive.lookup(1).client_id == 7
        assert len(archive) == 1

    def test_lookup_missing(self):
        assert TransactionArchive().lookup(42) is None

    def test_set_dispute_state(self):
        archive = TransactionArchive()
        archive.record(1, 7, TransactionType.DEPOSIT, Decimal("1"))
        archive.set_dispute_state(1, DisputeState.DISPUTED)

        assert archive.lookup(1).dispute_state == DisputeState.DISPUTED

    def test_concurrent_record_single_winner(self):
        archive = TransactionArchive()
        results = []
        barrier = threading.Barrier(8)

        def claim(client_id):
            barrier.wait()
            results.append(archive.record(1, client_id, TransactionType.DEPOSIT, Decimal("1")))

        threads = [threading.Thread(target=claim, args=(client_id,)) for client_id in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(archive) == 1
