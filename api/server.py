"""
FastAPI server for the fintrack web app.
Provides endpoints for transactions, balances, chart data, the income goal and the Sheets connection.
"""
import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError
from rich.console import Console

from fintrack.config import RECENT_LIMIT
from fintrack.goals import GoalCadence, IncomeGoal, carried_rollover, goal_progress
from fintrack.ledger import available_months, compute_balances, daily_expenses, monthly_summary, recent_transactions
from fintrack.models import TransactionSource, TransactionType, error_messages, new_transaction
from fintrack.store import SheetConnection, get_store, save_connection

console = Console()

app = FastAPI(title="fintrack API", version="1.0.0")

# Enable CORS for the web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store = None


class TransactionRequest(BaseModel):
    description: str
    amount: float
    date: Optional[datetime.date] = None
    type: TransactionType = TransactionType.EXPENSE
    source: TransactionSource = TransactionSource.GENERAL
    destination: Optional[TransactionSource] = None


class GoalRequest(BaseModel):
    amount: Optional[float] = None
    cadence: Optional[GoalCadence] = None
    opening_balance: Optional[float] = None
    rollover_start: Optional[datetime.date] = None
    disable_rollover: bool = False


class ConnectRequest(BaseModel):
    spreadsheet_id: str
    credentials_path: str
    auth_mode: str = "service_account"


def get_active_store():
    """One store per process so the mock client keeps its state between requests."""
    global _store
    if _store is None:
        try:
            _store = get_store()
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Could not open store: {e}")
    return _store


def reset_store():
    global _store
    _store = None


@app.get("/api/health")
def health_check():
    return {"status": "ok"}


@app.get("/api/transactions")
def list_transactions(limit: int = Query(RECENT_LIMIT, ge=0), store=Depends(get_active_store)):
    """Most recent transactions, newest first."""
    try:
        transactions = store.load_transactions()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "transactions": [tx.model_dump(mode="json") for tx in recent_transactions(transactions, limit)],
        "count": len(transactions),
    }


@app.post("/api/transactions", status_code=201)
def add_transaction(request: TransactionRequest, store=Depends(get_active_store)):
    try:
        tx = new_transaction(
            request.description,
            request.amount,
            request.date or datetime.date.today(),
            request.type,
            request.source,
            request.destination,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="; ".join(error_messages(e)))

    try:
        store.add_transaction(tx)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return tx.model_dump(mode="json")


@app.delete("/api/transactions/{tx_id}")
def delete_transaction(tx_id: str, store=Depends(get_active_store)):
    try:
        deleted = store.delete_transaction(tx_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Transaction not found: {tx_id}")
    return {"deleted": tx_id}


@app.get("/api/balances")
def get_balances(store=Depends(get_active_store)):
    try:
        settings = store.load_settings()
        transactions = store.load_transactions()
        result = compute_balances(transactions, settings.opening_balance)
        result.rollover = carried_rollover(transactions, settings)
        return result.as_dict()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/months")
def get_months(store=Depends(get_active_store)):
    """Months with data, newest first; the first one is the default selection."""
    try:
        months = available_months(store.load_transactions())
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"months": months, "default": months[0] if months else None}


@app.get("/api/charts/monthly")
def get_monthly_chart(store=Depends(get_active_store)):
    try:
        df = monthly_summary(store.load_transactions())
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "data": [
            {"month": row["Month"], "income": float(row["Income"]), "expense": float(row["Expense"])}
            for _, row in df.iterrows()
        ]
    }


@app.get("/api/charts/daily")
def get_daily_chart(month: Optional[str] = None, store=Depends(get_active_store)):
    try:
        transactions = store.load_transactions()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    if month is None:
        months = available_months(transactions)
        if not months:
            return {"month": None, "data": []}
        month = months[0]

    try:
        datetime.datetime.strptime(month, "%Y-%m")
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid month '{month}'. Use YYYY-MM.")

    df = daily_expenses(transactions, month)
    return {
        "month": month,
        "data": [{"day": row["Day"], "expense": float(row["Expense"])} for _, row in df.iterrows()],
    }


def _goal_payload(store) -> dict:
    settings = store.load_settings()
    progress = goal_progress(store.load_transactions(), settings.goal, datetime.date.today(), settings.rollover_start)
    return {
        "goal": settings.goal.model_dump(mode="json"),
        "opening_balance": settings.opening_balance,
        "rollover_start": settings.rollover_start.isoformat() if settings.rollover_start else None,
        "progress": progress.as_dict(),
    }


@app.get("/api/goal")
def get_goal(store=Depends(get_active_store)):
    """Income goal progress for the current period."""
    try:
        return _goal_payload(store)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.put("/api/goal")
def update_goal(request: GoalRequest, store=Depends(get_active_store)):
    try:
        settings = store.load_settings()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    try:
        settings.goal = IncomeGoal(
            amount=settings.goal.amount if request.amount is None else request.amount,
            cadence=request.cadence or settings.goal.cadence,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="; ".join(error_messages(e)))

    if request.opening_balance is not None:
        settings.opening_balance = request.opening_balance
    if request.disable_rollover:
        settings.rollover_start = None
    elif request.rollover_start is not None:
        settings.rollover_start = request.rollover_start

    try:
        store.save_settings(settings)
        return _goal_payload(store)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/connect")
def connect(request: ConnectRequest):
    """Save Google Sheets connection details and switch the server to the Sheets backend."""
    try:
        connection = SheetConnection(**request.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail="; ".join(error_messages(e)))

    path = save_connection(connection)
    console.print(f"[green]Saved connection to {path}[/green]")
    reset_store()
    return {"success": True, "message": "Connection saved", "backend": "sheets"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
