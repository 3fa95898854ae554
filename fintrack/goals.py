import calendar
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from fintrack.models import Transaction, TransactionSource, TransactionType


class GoalCadence(str, Enum):
    MONTHLY = "monthly"
    SEMI_MONTHLY = "semi-monthly"


class IncomeGoal(BaseModel):
    amount: float = Field(default=0.0, ge=0)
    cadence: GoalCadence = GoalCadence.MONTHLY


class TrackerSettings(BaseModel):
    """User settings persisted next to the transactions (Config sheet or settings.json)."""
    goal: IncomeGoal = Field(default_factory=IncomeGoal)
    opening_balance: float = 0.0
    rollover_start: Optional[date] = None

    def to_rows(self) -> list[list[str]]:
        """Key/Value rows as stored in the Config worksheet."""
        return [
            ["goal_amount", str(self.goal.amount)],
            ["goal_cadence", self.goal.cadence.value],
            ["opening_balance", str(self.opening_balance)],
            ["rollover_start", self.rollover_start.isoformat() if self.rollover_start else ""],
        ]

    @classmethod
    def from_mapping(cls, values: dict) -> "TrackerSettings":
        """Builds settings from Key/Value pairs; blank or missing keys keep their defaults."""
        goal = {}
        if values.get("goal_amount"):
            goal["amount"] = float(str(values["goal_amount"]).replace(",", ""))
        if values.get("goal_cadence"):
            goal["cadence"] = values["goal_cadence"]

        data = {"goal": IncomeGoal(**goal)}
        if values.get("opening_balance"):
            data["opening_balance"] = float(str(values["opening_balance"]).replace(",", ""))
        if values.get("rollover_start"):
            data["rollover_start"] = values["rollover_start"]
        return cls(**data)


@dataclass
class GoalProgress:
    start: date
    end: date
    goal: float
    carried_in: float
    earned: float
    spent: float

    @property
    def budget(self) -> float:
        return self.goal + self.carried_in

    @property
    def percent(self) -> float:
        if self.goal <= 0:
            return 0.0
        return min(self.earned / self.goal, 1.0) * 100

    @property
    def remaining(self) -> float:
        return max(self.goal - self.earned, 0.0)

    @property
    def unspent(self) -> float:
        return max(self.budget - self.spent, 0.0)

    def as_dict(self) -> dict:
        data = asdict(self)
        data["start"] = self.start.isoformat()
        data["end"] = self.end.isoformat()
        data.update(budget=self.budget, percent=self.percent, remaining=self.remaining, unspent=self.unspent)
        return data


def period_window(day: date, cadence: GoalCadence) -> tuple[date, date]:
    """Inclusive (start, end) of the goal period containing `day`."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    if cadence == GoalCadence.SEMI_MONTHLY:
        if day.day <= 15:
            return day.replace(day=1), day.replace(day=15)
        return day.replace(day=16), day.replace(day=last_day)
    return day.replace(day=1), day.replace(day=last_day)


def next_window(window: tuple[date, date], cadence: GoalCadence) -> tuple[date, date]:
    return period_window(window[1] + timedelta(days=1), cadence)


def summarize_period(
    transactions: Iterable[Transaction],
    goal: IncomeGoal,
    window: tuple[date, date],
    carried_in: float = 0.0,
) -> GoalProgress:
    """Income earned (always into general) and expenses paid from the general balance within the window."""
    start, end = window
    earned = 0.0
    spent = 0.0
    for tx in transactions:
        if not (start <= tx.date <= end):
            continue
        if tx.type == TransactionType.INCOME:
            earned += tx.amount
        elif tx.type == TransactionType.EXPENSE and tx.source == TransactionSource.GENERAL:
            spent += tx.amount

    return GoalProgress(start=start, end=end, goal=goal.amount, carried_in=carried_in, earned=earned, spent=spent)


def rollover(progress: GoalProgress) -> float:
    """Unspent budget of a finished period, carried into the next one."""
    return progress.unspent


def period_history(
    transactions: Iterable[Transaction],
    goal: IncomeGoal,
    start: date,
    today: date,
) -> list[GoalProgress]:
    """Progress for every window from the one containing `start` through the one containing `today`."""
    transactions = list(transactions)
    if start > today:
        return []

    history = []
    window = period_window(start, goal.cadence)
    carried = 0.0
    while window[0] <= today:
        progress = summarize_period(transactions, goal, window, carried_in=carried)
        history.append(progress)
        carried = rollover(progress)
        window = next_window(window, goal.cadence)
    return history


def goal_progress(
    transactions: Iterable[Transaction],
    goal: IncomeGoal,
    today: date | None = None,
    rollover_start: date | None = None,
) -> GoalProgress:
    """Progress of the current window, including carried budget when rollover is enabled."""
    today = today or date.today()
    if rollover_start is not None and rollover_start <= today:
        return period_history(transactions, goal, rollover_start, today)[-1]
    return summarize_period(transactions, goal, period_window(today, goal.cadence))


def carried_rollover(transactions: Iterable[Transaction], settings: TrackerSettings, today: date | None = None) -> float:
    """Budget carried into the current period's general balance; 0 when rollover is off."""
    if settings.rollover_start is None:
        return 0.0
    return goal_progress(transactions, settings.goal, today, settings.rollover_start).carried_in
