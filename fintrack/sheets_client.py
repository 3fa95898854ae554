import re

import gspread
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from rich.console import Console

from fintrack.config import (
    CONFIG_HEADERS,
    CONFIG_SHEET,
    TRANSACTION_HEADERS,
    TRANSACTIONS_SHEET,
    load_sheet_config,
    resolve_path,
)
from fintrack.goals import TrackerSettings
from fintrack.models import Transaction, sort_transactions

console = Console()

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def get_client(credentials_path: str, auth_mode: str = "service_account", authorized_user_path: str | None = None):
    """Authenticates with Google Sheets using a service account or an OAuth user flow."""
    if auth_mode == "oauth":
        # Opens a browser the first time, then reuses the cached authorized user file
        kwargs = {"scopes": SCOPES, "credentials_filename": credentials_path}
        if authorized_user_path:
            kwargs["authorized_user_filename"] = authorized_user_path
        return gspread.oauth(**kwargs)
    if auth_mode != "service_account":
        raise ValueError(f"Unknown auth mode: {auth_mode}")
    creds = Credentials.from_service_account_file(credentials_path, scopes=SCOPES)
    client = gspread.authorize(creds)
    return client


def ensure_worksheet(spreadsheet, title: str, headers: list[str]):
    """Returns the named worksheet, creating it (and its header row) when missing."""
    try:
        sheet = spreadsheet.worksheet(title)
    except gspread.WorksheetNotFound:
        console.print(f"[yellow]Worksheet '{title}' not found, creating it.[/yellow]")
        sheet = spreadsheet.add_worksheet(title=title, rows=1000, cols=max(10, len(headers)))

    if sheet.row_values(1) != headers:
        sheet.update(range_name="A1", values=[headers])
    return sheet


def parse_amount(value) -> float:
    """Cleans formatted cells such as '1,200,000' or '450.000 ₫' into a float."""
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    # Dots used as thousands separators (vi-VN display)
    if re.fullmatch(r'-?\d{1,3}(\.\d{3})+(\s*₫)?', text):
        text = text.replace('.', '')
    return float(re.sub(r'[^\d.-]', '', text))


def row_to_transaction(row: list[str], row_index: int) -> Transaction:
    values = dict(zip(TRANSACTION_HEADERS, row + [""] * (len(TRANSACTION_HEADERS) - len(row))))
    return Transaction(
        id=values["ID"],
        date=values["Date"],
        description=values["Description"],
        amount=parse_amount(values["Amount"]),
        type=values["Type"].strip().lower(),
        source=values["Source"].strip().lower() or "general",
        destination=values["Destination"].strip().lower() or None,
        row_index=row_index,
    )


def transaction_to_row(tx: Transaction) -> list:
    return [
        tx.id,
        tx.date.isoformat(),
        tx.description,
        tx.amount,
        tx.type.value,
        tx.source.value,
        tx.destination.value if tx.destination else "",
    ]


class SheetsStore:
    """
    Transactions and settings stored in a Google Spreadsheet.

    Uses a 'Transactions' worksheet (one row per transaction) and a 'Config'
    worksheet of Key/Value rows. API errors propagate to the caller.
    """

    def __init__(self, client, spreadsheet_id: str):
        if not spreadsheet_id:
            raise ValueError("No spreadsheet_id configured. Run 'fintrack connect' first.")
        self.client = client
        self.spreadsheet_id = spreadsheet_id
        self._spreadsheet = None

    @classmethod
    def from_config(cls, config: dict | None = None) -> "SheetsStore":
        config = config or load_sheet_config()
        client = get_client(
            str(resolve_path(config["credentials_path"])),
            auth_mode=config.get("auth_mode", "service_account"),
            authorized_user_path=str(resolve_path(config["authorized_user_path"])) if config.get("authorized_user_path") else None,
        )
        return cls(client, config["spreadsheet_id"])

    @property
    def spreadsheet(self):
        if self._spreadsheet is None:
            self._spreadsheet = self.client.open_by_key(self.spreadsheet_id)
        return self._spreadsheet

    def transactions_sheet(self):
        return ensure_worksheet(self.spreadsheet, TRANSACTIONS_SHEET, TRANSACTION_HEADERS)

    def config_sheet(self):
        return ensure_worksheet(self.spreadsheet, CONFIG_SHEET, CONFIG_HEADERS)

    def load_transactions(self) -> list[Transaction]:
        return self._read_transactions(self.transactions_sheet())

    def _read_transactions(self, sheet) -> list[Transaction]:
        all_values = sheet.get_all_values()

        transactions = []
        # Row 1 is the header; sheet rows are 1-based
        for i, row in enumerate(all_values[1:], start=2):
            if not any(cell.strip() for cell in row):
                continue
            try:
                transactions.append(row_to_transaction(row, i))
            except (ValidationError, ValueError) as e:
                console.print(f"[yellow]Skipping malformed row {i} in '{TRANSACTIONS_SHEET}': {e}[/yellow]")
        return sort_transactions(transactions)

    def add_transaction(self, transaction: Transaction) -> list[Transaction]:
        return self.add_transactions([transaction])

    def add_transactions(self, transactions: list[Transaction]) -> list[Transaction]:
        """Appends all rows in a single API call, then reads the sheet back once."""
        sheet = self.transactions_sheet()
        if transactions:
            sheet.append_rows([transaction_to_row(tx) for tx in transactions], value_input_option='RAW')
        return self._read_transactions(sheet)

    def delete_transaction(self, tx_id: str) -> bool:
        sheet = self.transactions_sheet()
        ids_col = sheet.col_values(1)

        # Look the row up again so stale row indices never delete the wrong entry
        for i, val in enumerate(ids_col):
            if i == 0:
                continue
            if val == tx_id:
                sheet.delete_rows(i + 1)
                return True
        return False

    def load_settings(self) -> TrackerSettings:
        rows = self.config_sheet().get_all_values()[1:]
        values = {row[0].strip(): (row[1] if len(row) > 1 else "") for row in rows if row and row[0].strip()}
        return TrackerSettings.from_mapping(values)

    def save_settings(self, settings: TrackerSettings) -> None:
        sheet = self.config_sheet()
        keys_col = sheet.col_values(1)
        key_rows = {val.strip(): i + 1 for i, val in enumerate(keys_col) if i > 0}

        updates = []
        next_row = len(keys_col) + 1
        for key, value in settings.to_rows():
            target_row = key_rows.get(key)
            if target_row is None:
                target_row = next_row
                next_row += 1
            updates.append({
                'range': f"{CONFIG_SHEET}!A{target_row}:B{target_row}",
                'values': [[key, value]]
            })

        body = {
            'valueInputOption': 'RAW',
            'data': updates
        }
        self.spreadsheet.values_batch_update(body)
