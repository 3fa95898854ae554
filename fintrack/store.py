import os
from pathlib import Path

from pydantic import BaseModel, field_validator
from rich.console import Console

from fintrack.config import load_sheet_config, save_sheet_config
from fintrack.local_store import LocalStore

console = Console()

BACKENDS = ("local", "sheets")


class SheetConnection(BaseModel):
    """Details needed to reach the spreadsheet; every field is required."""
    spreadsheet_id: str
    credentials_path: str
    auth_mode: str = "service_account"
    authorized_user_path: str = "resources/authorized_user.json"

    @field_validator("spreadsheet_id", "credentials_path")
    @classmethod
    def _required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("All fields are required")
        return value

    @field_validator("auth_mode")
    @classmethod
    def _known_mode(cls, value: str) -> str:
        if value not in ("service_account", "oauth"):
            raise ValueError("auth_mode must be 'service_account' or 'oauth'")
        return value


def save_connection(connection: SheetConnection, config_dir: Path | None = None) -> Path:
    """Stores the connection and switches the default backend to Google Sheets."""
    return save_sheet_config({**connection.model_dump(), "backend": "sheets"}, config_dir)


def use_mock() -> bool:
    return os.environ.get("FINTRACK_USE_MOCK", "").lower() in ("1", "true", "yes")


def get_store(backend: str | None = None, config: dict | None = None, data_dir: Path | None = None):
    """
    Returns the configured transaction store.

    Backend resolution order: explicit argument, FINTRACK_BACKEND, then the
    'backend' key of sheet_config.json. FINTRACK_USE_MOCK swaps the Google
    client for an in-memory one.
    """
    config = config or load_sheet_config()
    backend = backend or os.environ.get("FINTRACK_BACKEND") or config.get("backend", "local")
    if backend not in BACKENDS:
        raise ValueError(f"Unknown backend '{backend}'. Choose one of: {', '.join(BACKENDS)}")

    if backend == "local":
        return LocalStore(data_dir)

    from fintrack.sheets_client import SheetsStore
    if use_mock():
        from fintrack.mock_sheets_client import get_client as get_mock_client
        console.print("[bold cyan][Mock][/bold cyan] Using in-memory Google Sheets client.")
        return SheetsStore(get_mock_client(), config.get("spreadsheet_id") or "mock_id")
    return SheetsStore.from_config(config)
