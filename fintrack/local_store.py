import json
from pathlib import Path

from rich.console import Console

from fintrack.config import DATA_DIR, SETTINGS_FILE, TRANSACTIONS_STORAGE_KEY
from fintrack.goals import TrackerSettings
from fintrack.models import Transaction, sort_transactions
from fintrack.sample_data import initial_transactions

console = Console()


class LocalStore:
    """
    Transactions kept in a JSON file on disk.

    A missing or unreadable file yields the sample transactions so the
    dashboard always has something to show. Write failures are reported and
    the in-memory list stays authoritative.
    """

    def __init__(self, data_dir: Path | None = None):
        self.data_dir = Path(data_dir or DATA_DIR)
        self.path = self.data_dir / f"{TRANSACTIONS_STORAGE_KEY}.json"
        self.settings_path = self.data_dir / SETTINGS_FILE

    def load_transactions(self) -> list[Transaction]:
        if not self.path.exists():
            return initial_transactions()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
            if not isinstance(raw, list):
                raise ValueError(f"expected a list of transactions, got {type(raw).__name__}")
            return sort_transactions(Transaction.model_validate(item) for item in raw)
        except (OSError, ValueError) as e:
            console.print(f"[red]Failed to parse transactions from {self.path}: {e}[/red]")
            return initial_transactions()

    def save_transactions(self, transactions: list[Transaction]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            payload = [tx.model_dump(mode='json') for tx in transactions]
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
        except OSError as e:
            console.print(f"[red]Failed to save transactions to {self.path}: {e}[/red]")

    def add_transaction(self, transaction: Transaction) -> list[Transaction]:
        return self.add_transactions([transaction])

    def add_transactions(self, new: list[Transaction]) -> list[Transaction]:
        """Adds a batch with a single read and a single write."""
        transactions = sort_transactions(list(new) + self.load_transactions())
        self.save_transactions(transactions)
        return transactions

    def delete_transaction(self, tx_id: str) -> bool:
        transactions = self.load_transactions()
        remaining = [tx for tx in transactions if tx.id != tx_id]
        if len(remaining) == len(transactions):
            return False
        self.save_transactions(remaining)
        return True

    def load_settings(self) -> TrackerSettings:
        if not self.settings_path.exists():
            return TrackerSettings()
        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                return TrackerSettings.model_validate(json.load(f))
        except (OSError, ValueError) as e:
            console.print(f"[yellow]Warning: could not read {self.settings_path}, using defaults: {e}[/yellow]")
            return TrackerSettings()

    def save_settings(self, settings: TrackerSettings) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(self.settings_path, 'w', encoding='utf-8') as f:
            json.dump(settings.model_dump(mode='json'), f, indent=2)
