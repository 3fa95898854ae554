from datetime import date

from fintrack.ledger import (
    available_months,
    compute_balances,
    daily_expenses,
    format_currency,
    monthly_summary,
    recent_transactions,
)
from fintrack.models import TransactionType
from tests.helpers import PROVISION, make_tx, may_transactions


def test_compute_balances_routes_transfers():
    balances = compute_balances(may_transactions())

    # 10M income - 2M to provision - 0.5M - 1.2M expenses + 0.1M back from provision
    assert balances.general == 6_400_000
    # 2M in - 0.3M expense - 0.1M back to general
    assert balances.provision == 1_600_000
    assert balances.total == 8_000_000


def test_compute_balances_opening_balance_seeds_general():
    balances = compute_balances([], opening_balance=5_000_000)

    assert balances.as_dict() == {"general": 5_000_000, "provision": 0.0, "total": 5_000_000, "rollover": 0.0}


def test_income_always_credits_general():
    tx = make_tx("i", date(2024, 5, 1), 300_000, TransactionType.INCOME, PROVISION)
    balances = compute_balances([tx])

    assert balances.general == 300_000
    assert balances.provision == 0


def test_monthly_summary_excludes_transfers():
    df = monthly_summary(may_transactions())

    assert df['Month'].tolist() == ['2024-04', '2024-05']
    assert df['Income'].tolist() == [0.0, 10_000_000.0]
    assert df['Expense'].tolist() == [1_200_000.0, 800_000.0]


def test_monthly_summary_empty():
    df = monthly_summary([])

    assert df.empty
    assert list(df.columns) == ['Month', 'Income', 'Expense']


def test_daily_expenses_for_month():
    df = daily_expenses(may_transactions(), '2024-05')

    assert df['Day'].tolist() == ['02', '05']
    assert df['Expense'].tolist() == [500_000.0, 300_000.0]


def test_daily_expenses_month_without_data():
    df = daily_expenses(may_transactions(), '2023-01')

    assert df.empty
    assert list(df.columns) == ['Day', 'Expense']


def test_available_months_newest_first():
    assert available_months(may_transactions()) == ['2024-05', '2024-04']
    assert available_months([]) == []


def test_recent_transactions_limit():
    txs = may_transactions()
    assert recent_transactions(txs, 2) == txs[:2]
    assert len(recent_transactions(txs)) == len(txs)


def test_format_currency():
    assert format_currency(5_000_000) == "5.000.000 ₫"
    assert format_currency(-45_000) == "-45.000 ₫"
    assert format_currency(0) == "0 ₫"
