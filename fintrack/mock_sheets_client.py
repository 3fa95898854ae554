import gspread
from rich.console import Console

from fintrack.config import CONFIG_HEADERS, CONFIG_SHEET, TRANSACTION_HEADERS, TRANSACTIONS_SHEET
from fintrack.sample_data import initial_transactions
from fintrack.sheets_client import transaction_to_row

console = Console()


class MockWorksheet:
    def __init__(self, title, data=None):
        self.title = title
        self.data = data if data is not None else [] # List of lists (rows)

    def col_values(self, index):
        # 1-based index
        col_idx = index - 1
        return [str(row[col_idx]) if col_idx < len(row) else "" for row in self.data]

    def row_values(self, index, **kwargs):
        # 1-based index
        row_idx = index - 1
        if 0 <= row_idx < len(self.data):
            return [str(v) for v in self.data[row_idx]]
        return []

    def get_all_values(self):
        return [[str(v) for v in row] for row in self.data]

    def append_row(self, values, **kwargs):
        self.data.append(list(values))

    def append_rows(self, values, **kwargs):
        self.data.extend(list(row) for row in values)

    def delete_rows(self, start_index, end_index=None):
        end_index = end_index or start_index
        del self.data[start_index - 1:end_index]

    def update(self, range_name=None, values=None, **kwargs):
        row, col = gspread.utils.a1_to_rowcol(range_name.split(":")[0])
        for r_offset, row_values in enumerate(values):
            self._write_row(row + r_offset, col, row_values)

    def _write_row(self, row, col, values):
        while len(self.data) < row:
            self.data.append([])
        target = self.data[row - 1]
        while len(target) < col - 1 + len(values):
            target.append("")
        for offset, value in enumerate(values):
            target[col - 1 + offset] = value


class MockSpreadsheet:
    def __init__(self, sheets=None):
        self.sheets = sheets if sheets is not None else {}

    def worksheet(self, name):
        if name not in self.sheets:
            raise gspread.WorksheetNotFound(name)
        return self.sheets[name]

    def add_worksheet(self, title, rows=1000, cols=26, **kwargs):
        self.sheets[title] = MockWorksheet(title)
        return self.sheets[title]

    def values_batch_update(self, body):
        for update in body.get('data', []):
            sheet_name, cell_range = update['range'].split('!')
            self.worksheet(sheet_name).update(range_name=cell_range, values=update['values'])
        console.print(f"[bold cyan][Mock][/bold cyan] Batch Update executed with {len(body.get('data', []))} updates.")
        return {"spreadsheetId": "mock_id", "totalUpdatedRanges": len(body.get('data', []))}


class MockClient:
    def __init__(self, sheets=None):
        self.spreadsheet = MockSpreadsheet(sheets)

    def open_by_key(self, key):
        return self.spreadsheet


def get_mock_data() -> dict:
    """Returns default worksheets: sample transactions and a monthly income goal."""
    transactions = [list(TRANSACTION_HEADERS)] + [transaction_to_row(tx) for tx in initial_transactions()]
    config = [
        list(CONFIG_HEADERS),
        ["goal_amount", "20000000"],
        ["goal_cadence", "monthly"],
        ["opening_balance", "0"],
        ["rollover_start", ""],
    ]
    return {
        TRANSACTIONS_SHEET: MockWorksheet(TRANSACTIONS_SHEET, transactions),
        CONFIG_SHEET: MockWorksheet(CONFIG_SHEET, config),
    }


def get_client(credentials_path: str = "", **kwargs):
    return MockClient(get_mock_data())
