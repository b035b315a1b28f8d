import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional

from models import (
    MAX_AMOUNT,
    MAX_AMOUNT_SCALE,
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)


def parse_row(row: Dict[Optional[str], Optional[str]]) -> Optional[Transaction]:
    """
    Parse CSV row into Transaction.
    Returns None for rows that do not describe a well-formed record.
    """
    try:
        normalized = {
            k.strip(): (v or "").strip()
            for k, v in row.items()
            if isinstance(k, str)
        }

        transaction_type = TransactionType(normalized["type"].lower())
        client_id = int(normalized["client"])
        transaction_id = int(normalized["tx"])

        amount = None
        amount_str = normalized.get("amount", "")
        if amount_str:
            amount = Decimal(amount_str)
    except (KeyError, ValueError, InvalidOperation) as e:
        logger.debug(f"Dropping unparseable row {row}: {e!r}")
        return None

    if not 0 <= client_id <= MAX_CLIENT_ID:
        logger.debug(f"Dropping row {row}: client id out of range")
        return None
    if not 0 <= transaction_id <= MAX_TRANSACTION_ID:
        logger.debug(f"Dropping row {row}: tx id out of range")
        return None
    if amount is not None and not amount.is_finite():
        logger.debug(f"Dropping row {row}: amount is not a finite number")
        return None
    if amount is not None and (amount.copy_abs() > MAX_AMOUNT or -amount.as_tuple().exponent > MAX_AMOUNT_SCALE):
        logger.debug(f"Dropping row {row}: amount outside supported range")
        return None
    if transaction_type.carries_amount != (amount is not None):
        logger.debug(f"Dropping row {row}: amount does not match {transaction_type.value}")
        return None

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def parse_rows(lines: Iterable[str]) -> Iterator[Transaction]:
    """Parse CSV text (header first) into transactions, skipping bad rows."""
    reader = csv.DictReader(lines, skipinitialspace=True)
    for row in reader:
        transaction = parse_row(row)
        if transaction is not None:
            yield transaction


def read_transactions(filepath: str) -> Iterator[Transaction]:
    """
    Stream transactions from a CSV file.
    Raises OSError if the file cannot be opened.
    """
    with open(filepath, "r", newline="") as f:
        yield from parse_rows(f)
