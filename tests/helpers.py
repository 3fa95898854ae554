from datetime import date

from fintrack.models import Transaction, TransactionSource, TransactionType

GENERAL = TransactionSource.GENERAL
PROVISION = TransactionSource.PROVISION


def make_tx(id_, day, amount, type_, source=GENERAL, destination=None, description="test"):
    return Transaction(
        id=id_,
        date=day,
        description=description,
        amount=amount,
        type=type_,
        source=source,
        destination=destination,
    )


def may_transactions():
    """Two months of activity touching both buckets."""
    return [
        make_tx("t1", date(2024, 5, 15), 10_000_000, TransactionType.INCOME),
        make_tx("t2", date(2024, 5, 16), 2_000_000, TransactionType.TRANSFER, GENERAL, PROVISION),
        make_tx("t3", date(2024, 5, 2), 500_000, TransactionType.EXPENSE),
        make_tx("t4", date(2024, 5, 5), 300_000, TransactionType.EXPENSE, PROVISION),
        make_tx("t5", date(2024, 4, 28), 1_200_000, TransactionType.EXPENSE),
        make_tx("t6", date(2024, 5, 20), 100_000, TransactionType.TRANSFER, PROVISION, GENERAL),
    ]
