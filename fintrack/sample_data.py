from datetime import date

from fintrack.models import Transaction, TransactionSource, TransactionType, sort_transactions


def _day(today: date, day: int, months_back: int = 0) -> date:
    year, month = today.year, today.month - months_back
    while month < 1:
        month += 12
        year -= 1
    return date(year, month, day)


def initial_transactions(today: date | None = None) -> list[Transaction]:
    """Demo transactions dated in the current month (plus one in the previous month)."""
    today = today or date.today()
    general, provision = TransactionSource.GENERAL, TransactionSource.PROVISION
    rows = [
        ("txn-income-001", _day(today, 15), "Monthly salary", 17700000, TransactionType.INCOME, general, None),
        ("txn-transfer-001", _day(today, 16), "Salary share to provision fund", 2000000, TransactionType.TRANSFER, general, provision),
        ("txn-001", _day(today, 2), "Morning coffee", 45000, TransactionType.EXPENSE, general, None),
        ("txn-002", _day(today, 2), "Office lunch", 55000, TransactionType.EXPENSE, general, None),
        ("txn-003", _day(today, 3), "Supermarket run", 750000, TransactionType.EXPENSE, general, None),
        ("txn-004", _day(today, 5), "Electricity bill", 450000, TransactionType.EXPENSE, provision, None),
        ("txn-005", _day(today, 5), "Water bill", 150000, TransactionType.EXPENSE, provision, None),
        ("txn-006", _day(today, 7), "Dinner with friends", 600000, TransactionType.EXPENSE, general, None),
        ("txn-007", _day(today, 28, months_back=1), "Shopping last month", 1200000, TransactionType.EXPENSE, general, None),
    ]
    return sort_transactions(
        Transaction(id=id_, date=d, description=desc, amount=amount, type=type_, source=source, destination=dest)
        for id_, d, desc, amount, type_, source, dest in rows
    )
