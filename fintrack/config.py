# Configuration for fintrack

import json
import os
from pathlib import Path
from rich.console import Console

console = Console()

ROOT_DIR = Path(__file__).parent.parent
CONFIG_DIR = Path(os.environ.get("FINTRACK_CONFIG_DIR", ROOT_DIR / "config"))
DATA_DIR = Path(os.environ.get("FINTRACK_DATA_DIR", ROOT_DIR / "data"))

# Local storage file, named after the browser storage key of the web app
TRANSACTIONS_STORAGE_KEY = "financeTrackerTransactions"
SETTINGS_FILE = "settings.json"

# Worksheets expected in the spreadsheet
TRANSACTIONS_SHEET = "Transactions"
CONFIG_SHEET = "Config"
TRANSACTION_HEADERS = ["ID", "Date", "Description", "Amount", "Type", "Source", "Destination"]
CONFIG_HEADERS = ["Key", "Value"]

RECENT_LIMIT = 20

DEFAULT_SHEET_CONFIG = {
    "spreadsheet_id": "",
    "credentials_path": "resources/credentials.json",
    "auth_mode": "service_account",
    "authorized_user_path": "resources/authorized_user.json",
    "backend": "local",
}


def load_sheet_config(config_dir: Path | None = None) -> dict:
    """Loads spreadsheet connection settings from config/sheet_config.json or falls back to example."""
    config_dir = Path(config_dir or CONFIG_DIR)
    config_path = config_dir / "sheet_config.json"
    example_path = config_dir / "sheet_config.example.json"

    config = dict(DEFAULT_SHEET_CONFIG)
    if config_path.exists():
        with open(config_path, 'r') as f:
            config.update(json.load(f))
    elif example_path.exists():
        console.print("[yellow]Warning: config/sheet_config.json not found. Using example config.[/yellow]")
        with open(example_path, 'r') as f:
            config.update(json.load(f))

    return config


def save_sheet_config(config: dict, config_dir: Path | None = None) -> Path:
    """Writes connection settings to config/sheet_config.json, keeping unknown keys."""
    config_dir = Path(config_dir or CONFIG_DIR)
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "sheet_config.json"

    merged = dict(DEFAULT_SHEET_CONFIG)
    if config_path.exists():
        with open(config_path, 'r') as f:
            merged.update(json.load(f))
    merged.update(config)

    with open(config_path, 'w') as f:
        json.dump(merged, f, indent=2)
    return config_path


def resolve_path(path: str) -> Path:
    """Relative credential paths are taken from the project root."""
    p = Path(path)
    if p.is_absolute():
        return p
    return ROOT_DIR / p
