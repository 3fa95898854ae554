from datetime import date

import pandas as pd
import pytest

from fintrack.data_loader import load_csv, to_transactions
from fintrack.models import TransactionSource, TransactionType


@pytest.fixture
def signed_csv(tmp_path):
    p = tmp_path / "bank.csv"
    p.write_text(
        'Date,Description,Amount\n'
        '2024-05-01,Salary,"10,000,000"\n'
        '2024-05-02,Coffee,-45000\n'
        'not-a-date,Broken,-1\n',
        encoding="utf-8",
    )
    return str(p)


def test_load_csv_infers_type_from_sign(signed_csv):
    df = load_csv(signed_csv)

    assert len(df) == 2
    assert pd.api.types.is_datetime64_any_dtype(df['DATE'])
    assert df['AMOUNT'].tolist() == [10_000_000.0, 45_000.0]
    assert df['TYPE'].tolist() == ['income', 'expense']
    assert df['SOURCE'].tolist() == ['general', 'general']


def test_to_transactions(signed_csv):
    transactions = to_transactions(load_csv(signed_csv))

    assert len({tx.id for tx in transactions}) == 2
    salary, coffee = transactions
    assert salary.type == TransactionType.INCOME
    assert salary.date == date(2024, 5, 1)
    assert coffee.type == TransactionType.EXPENSE
    assert coffee.amount == 45_000


def test_explicit_type_and_routing(tmp_path):
    p = tmp_path / "full.csv"
    p.write_text(
        'date,description,amount,type,source,destination\n'
        '2024-05-16,To reserve,2000000,Transfer,general,provision\n'
        '2024-05-05,Electricity,450000,expense,provision,\n',
        encoding="utf-8",
    )
    transfer, bill = to_transactions(load_csv(str(p)))

    assert transfer.type == TransactionType.TRANSFER
    assert transfer.destination == TransactionSource.PROVISION
    assert bill.source == TransactionSource.PROVISION
    assert bill.destination is None


def test_missing_columns(tmp_path):
    p = tmp_path / "bad.csv"
    p.write_text("DATE,AMOUNT\n2024-05-01,10\n", encoding="utf-8")

    with pytest.raises(ValueError, match="missing required columns"):
        load_csv(str(p))
