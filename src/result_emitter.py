import csv
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN, localcontext
from typing import Dict, List, TextIO

from models import ClientAccount

HEADER = ("client", "available", "held", "total", "locked")


@dataclass(frozen=True)
class ResultRow:
    client: int
    available: str
    held: str
    total: str
    locked: str

    def as_tuple(self) -> tuple:
        return (self.client, self.available, self.held, self.total, self.locked)


def format_decimal(value: Decimal, places: int = 4, rounding: str = ROUND_HALF_EVEN) -> str:
    """Format decimal with a fixed number of fractional digits."""
    with localcontext() as ctx:
        # quantize fails once the result needs more digits than the context holds
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        quantized = value.quantize(Decimal(1).scaleb(-places), rounding=rounding)
    if quantized.is_zero():
        # Drops the sign of -0.0000
        quantized = abs(quantized)
    return f"{quantized:f}"


def rows(accounts: Dict[int, ClientAccount], places: int = 4, rounding: str = ROUND_HALF_EVEN) -> List[ResultRow]:
    """One row per client, ordered by client id."""
    return [
        ResultRow(
            client=client_id,
            available=format_decimal(account.available, places, rounding),
            held=format_decimal(account.held, places, rounding),
            total=format_decimal(account.total, places, rounding),
            locked=str(account.locked).lower(),
        )
        for client_id, account in sorted(accounts.items())
    ]


def write_csv(
    accounts: Dict[int, ClientAccount],
    stream: TextIO,
    places: int = 4,
    rounding: str = ROUND_HALF_EVEN,
) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(HEADER)
    for row in rows(accounts, places, rounding):
        writer.writerow(row.as_tuple())
