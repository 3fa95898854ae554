from dataclasses import dataclass
from typing import Iterable

import pandas as pd

from fintrack.config import RECENT_LIMIT
from fintrack.models import Transaction, TransactionSource, TransactionType

FRAME_COLUMNS = ['ID', 'DATE', 'DESCRIPTION', 'AMOUNT', 'TYPE', 'SOURCE', 'DESTINATION']


@dataclass
class Balances:
    general: float = 0.0
    provision: float = 0.0
    # Unspent goal budget carried into the current period (already part of general)
    rollover: float = 0.0

    @property
    def total(self) -> float:
        return self.general + self.provision

    def as_dict(self) -> dict:
        return {"general": self.general, "provision": self.provision, "total": self.total, "rollover": self.rollover}


def compute_balances(transactions: Iterable[Transaction], opening_balance: float = 0.0) -> Balances:
    """
    Folds transactions into the general and provision balances.

    Income always lands in general; provision is fed only by transfers.
    Expenses debit their source bucket and transfers move the amount from
    source to destination. The opening balance seeds general.
    """
    buckets = {TransactionSource.GENERAL: float(opening_balance), TransactionSource.PROVISION: 0.0}

    for tx in transactions:
        if tx.type == TransactionType.INCOME:
            buckets[TransactionSource.GENERAL] += tx.amount
        elif tx.type == TransactionType.EXPENSE:
            buckets[tx.source] -= tx.amount
        elif tx.type == TransactionType.TRANSFER:
            buckets[tx.source] -= tx.amount
            buckets[tx.destination] += tx.amount

    return Balances(general=buckets[TransactionSource.GENERAL], provision=buckets[TransactionSource.PROVISION])


def transactions_to_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Flattens transactions into a DataFrame with datetime DATE and float AMOUNT columns."""
    records = [
        {
            'ID': tx.id,
            'DATE': tx.date,
            'DESCRIPTION': tx.description,
            'AMOUNT': tx.amount,
            'TYPE': tx.type.value,
            'SOURCE': tx.source.value,
            'DESTINATION': tx.destination.value if tx.destination else None,
        }
        for tx in transactions
    ]
    df = pd.DataFrame(records, columns=FRAME_COLUMNS)
    df['DATE'] = pd.to_datetime(df['DATE'])
    df['AMOUNT'] = df['AMOUNT'].astype(float)
    return df


def monthly_summary(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """
    Sums income and expenses per calendar month.

    Returns columns Month ("YYYY-MM"), Income, Expense sorted oldest first.
    Transfers move money between buckets and are left out.
    """
    df = transactions_to_frame(transactions)
    df = df[df['TYPE'].isin([TransactionType.INCOME.value, TransactionType.EXPENSE.value])]
    if df.empty:
        return pd.DataFrame(columns=['Month', 'Income', 'Expense'])

    df = df.copy()
    df['Month'] = df['DATE'].dt.strftime('%Y-%m')

    pivot_df = df.pivot_table(
        index='Month',
        columns='TYPE',
        values='AMOUNT',
        aggfunc='sum',
        fill_value=0.0,
    )
    pivot_df = pivot_df.reindex(columns=[TransactionType.INCOME.value, TransactionType.EXPENSE.value], fill_value=0.0)
    pivot_df = pivot_df.rename(columns={TransactionType.INCOME.value: 'Income', TransactionType.EXPENSE.value: 'Expense'})
    pivot_df.columns.name = None

    return pivot_df.sort_index().reset_index()[['Month', 'Income', 'Expense']]


def daily_expenses(transactions: Iterable[Transaction], month: str) -> pd.DataFrame:
    """Sums expenses per day of the given "YYYY-MM" month. Columns: Day ("DD"), Expense."""
    df = transactions_to_frame(transactions)
    df = df[(df['TYPE'] == TransactionType.EXPENSE.value) & (df['DATE'].dt.strftime('%Y-%m') == month)]
    if df.empty:
        return pd.DataFrame(columns=['Day', 'Expense'])

    df = df.copy()
    df['Day'] = df['DATE'].dt.strftime('%d')
    daily = df.groupby('Day', sort=True)['AMOUNT'].sum().rename('Expense')
    return daily.reset_index()


def available_months(transactions: Iterable[Transaction]) -> list[str]:
    """Distinct "YYYY-MM" months, newest first."""
    return sorted({tx.date.strftime('%Y-%m') for tx in transactions}, reverse=True)


def recent_transactions(transactions: list[Transaction], limit: int = RECENT_LIMIT) -> list[Transaction]:
    return transactions[:limit]


def format_currency(value: float) -> str:
    """Formats an amount in Vietnamese dong, e.g. 5000000 -> '5.000.000 ₫'."""
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.0f}".replace(",", ".")
    return f"{sign}{digits} ₫"
