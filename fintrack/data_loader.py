import pandas as pd

from fintrack.models import Transaction, TransactionSource, TransactionType, new_transaction_id


def load_csv(file_path: str) -> pd.DataFrame:
    """
    Loads a CSV file of transactions.

    Expected format:
    DATE, DESCRIPTION, AMOUNT and optionally TYPE, SOURCE, DESTINATION

    Without a TYPE column the sign of AMOUNT decides: negative amounts are
    expenses, positive ones income.

    Args:
        file_path: Path to the CSV file.

    Returns:
        pd.DataFrame: DataFrame with parsed dates, positive float amounts and
        lower-case TYPE/SOURCE/DESTINATION columns.
    """
    try:
        df = pd.read_csv(file_path)

        # Check if required columns exist (case-insensitive)
        required_cols = ["DATE", "DESCRIPTION", "AMOUNT"]
        df.columns = df.columns.str.upper().str.strip()

        if not all(col in df.columns for col in required_cols):
            raise ValueError(f"CSV missing required columns: {required_cols}")

        df["DATE"] = pd.to_datetime(df["DATE"], errors='coerce')

        # Clean Amounts (remove currency symbols and separators if present)
        if df["AMOUNT"].dtype == 'object':
            df["AMOUNT"] = df["AMOUNT"].astype(str).str.replace(r'[^\d.-]', '', regex=True).astype(float)
        df["AMOUNT"] = df["AMOUNT"].astype(float)

        if "TYPE" not in df.columns:
            df["TYPE"] = df["AMOUNT"].map(lambda amount: TransactionType.EXPENSE.value if amount < 0 else TransactionType.INCOME.value)
        df["AMOUNT"] = df["AMOUNT"].abs()

        for col, default in (("TYPE", ""), ("SOURCE", TransactionSource.GENERAL.value), ("DESTINATION", "")):
            if col not in df.columns:
                df[col] = default
            df[col] = df[col].fillna(default).astype(str).str.strip().str.lower()
        df.loc[df["SOURCE"] == "", "SOURCE"] = TransactionSource.GENERAL.value

        # Drop rows with invalid dates
        cleaned_df = df.dropna(subset=["DATE"]).copy()

        return cleaned_df

    except Exception as e:
        raise ValueError(f"Error loading CSV: {e}")


def to_transactions(df: pd.DataFrame) -> list[Transaction]:
    """Converts a loaded CSV frame into validated transactions with unique ids."""
    base_id = new_transaction_id()
    transactions = []
    for i, row in enumerate(df.itertuples(index=False)):
        transactions.append(Transaction(
            id=f"{base_id}-{i}",
            date=row.DATE.date(),
            description=str(row.DESCRIPTION),
            amount=float(row.AMOUNT),
            type=row.TYPE,
            source=row.SOURCE,
            destination=row.DESTINATION or None,
        ))
    return transactions
