import datetime
import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.server import app, get_active_store, reset_store
from fintrack.local_store import LocalStore


@pytest.fixture
def client():
    reset_store()
    yield TestClient(app)
    reset_store()


@pytest.fixture
def empty_store():
    store = LocalStore()
    store.save_transactions([])
    return store


def _post(client, **payload):
    return client.post("/api/transactions", json=payload)


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_add_transactions_and_balances(client, empty_store):
    response = _post(client, description="Salary", amount=1_000_000, date="2024-05-01", type="income")
    assert response.status_code == 201
    assert response.json()["id"].startswith("txn-")

    _post(client, description="Groceries", amount=200_000, date="2024-05-02")
    _post(client, description="Reserve", amount=300_000, date="2024-05-03",
          type="transfer", source="general", destination="provision")

    response = client.get("/api/balances")
    assert response.status_code == 200
    assert response.json() == {"general": 500_000, "provision": 300_000, "total": 800_000, "rollover": 0.0}

    response = client.get("/api/transactions")
    data = response.json()
    assert data["count"] == 3
    assert [tx["description"] for tx in data["transactions"]] == ["Reserve", "Groceries", "Salary"]


def test_add_transaction_validation(client, empty_store):
    assert _post(client, description="Zero", amount=0).status_code == 400
    response = _post(client, description="  ", amount=10)
    assert response.status_code == 400
    assert response.json()["detail"] == "description must not be empty"

    response = _post(client, description="Loop", amount=10, type="transfer", source="general", destination="general")
    assert response.status_code == 400
    assert "differ" in response.json()["detail"]

    assert _post(client, description="Typo", amount=10, type="gift").status_code == 422


def test_delete_transaction(client, empty_store):
    tx_id = _post(client, description="Coffee", amount=45_000, date="2024-05-02").json()["id"]

    assert client.delete(f"/api/transactions/{tx_id}").status_code == 200
    assert client.delete(f"/api/transactions/{tx_id}").status_code == 404
    assert client.get("/api/transactions").json()["count"] == 0


def test_chart_data(client, empty_store):
    _post(client, description="Salary", amount=1_000_000, date="2024-05-01", type="income")
    _post(client, description="Lunch", amount=55_000, date="2024-05-02")
    _post(client, description="Dinner", amount=100_000, date="2024-05-02")
    _post(client, description="Old", amount=10_000, date="2024-04-20")

    assert client.get("/api/months").json() == {"months": ["2024-05", "2024-04"], "default": "2024-05"}

    monthly = client.get("/api/charts/monthly").json()["data"]
    assert monthly == [
        {"month": "2024-04", "income": 0.0, "expense": 10_000.0},
        {"month": "2024-05", "income": 1_000_000.0, "expense": 155_000.0},
    ]

    daily = client.get("/api/charts/daily").json()
    assert daily == {"month": "2024-05", "data": [{"day": "02", "expense": 155_000.0}]}

    assert client.get("/api/charts/daily", params={"month": "2024-04"}).json()["data"] == [
        {"day": "20", "expense": 10_000.0}
    ]
    assert client.get("/api/charts/daily", params={"month": "May"}).status_code == 400


def test_daily_chart_without_data(client, empty_store):
    assert client.get("/api/charts/daily").json() == {"month": None, "data": []}


def test_goal_update_and_progress(client, empty_store):
    response = client.put("/api/goal", json={"amount": 2_000_000, "cadence": "semi-monthly", "opening_balance": 500_000})
    assert response.status_code == 200
    data = response.json()
    assert data["goal"] == {"amount": 2_000_000, "cadence": "semi-monthly"}
    assert data["opening_balance"] == 500_000
    assert data["progress"]["goal"] == 2_000_000
    assert {"start", "end", "earned", "percent", "remaining", "carried_in", "unspent"} <= set(data["progress"])

    assert client.get("/api/balances").json()["general"] == 500_000

    response = client.put("/api/goal", json={"rollover_start": "2024-01-01"})
    assert response.json()["rollover_start"] == "2024-01-01"
    response = client.put("/api/goal", json={"disable_rollover": True})
    assert response.json()["rollover_start"] is None

    assert client.put("/api/goal", json={"amount": -5}).status_code == 400
    assert client.get("/api/goal").json()["goal"]["amount"] == 2_000_000


def test_connect(client, isolated_dirs):
    response = client.post("/api/connect", json={"spreadsheet_id": " ", "credentials_path": "creds.json"})
    assert response.status_code == 400
    assert response.json()["detail"] == "All fields are required"

    response = client.post("/api/connect", json={"spreadsheet_id": "abc", "credentials_path": "creds.json"})
    assert response.status_code == 200
    assert response.json()["backend"] == "sheets"
    saved = json.loads((isolated_dirs["config_dir"] / "sheet_config.json").read_text())
    assert saved["spreadsheet_id"] == "abc"


def test_transactions_limit(client, empty_store):
    for day in (1, 2, 3):
        _post(client, description=f"Coffee {day}", amount=45_000, date=f"2024-05-0{day}")

    data = client.get("/api/transactions", params={"limit": 2}).json()
    assert [tx["description"] for tx in data["transactions"]] == ["Coffee 3", "Coffee 2"]
    assert data["count"] == 3

    assert client.get("/api/transactions", params={"limit": 0}).json()["transactions"] == []
    assert client.get("/api/transactions", params={"limit": -1}).status_code == 422


def test_sheets_backend_mock_keeps_state(client, monkeypatch):
    monkeypatch.setenv("FINTRACK_BACKEND", "sheets")
    monkeypatch.setenv("FINTRACK_USE_MOCK", "true")

    assert client.get("/api/transactions").json()["count"] == 9
    assert _post(client, description="Bonus", amount=500_000, type="income").status_code == 201
    assert client.get("/api/transactions").json()["count"] == 10
    assert client.get("/api/goal").json()["goal"]["amount"] == 20_000_000


def test_balances_report_carried_rollover(client, empty_store):
    this_month = datetime.date.today().replace(day=1)
    last_month = (this_month - datetime.timedelta(days=1)).replace(day=1)
    _post(client, description="Rent", amount=300_000, date=last_month.isoformat())

    client.put("/api/goal", json={"amount": 1_000_000, "cadence": "monthly"})
    assert client.get("/api/balances").json()["rollover"] == 0.0

    client.put("/api/goal", json={"rollover_start": last_month.isoformat()})
    data = client.get("/api/balances").json()
    assert data["rollover"] == 700_000
    assert data["general"] == -300_000


@pytest.mark.parametrize("path", ["/api/months", "/api/charts/monthly", "/api/charts/daily"])
def test_read_endpoints_map_store_errors_to_500(client, path):
    store = MagicMock()
    store.load_transactions.side_effect = RuntimeError("quota exceeded")
    app.dependency_overrides[get_active_store] = lambda: store
    try:
        response = client.get(path)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"detail": "quota exceeded"}
