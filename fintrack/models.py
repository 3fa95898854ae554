from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionSource(str, Enum):
    GENERAL = "general"
    PROVISION = "provision"


class Transaction(BaseModel):
    """
    A single movement of money.

    Income always credits general and expenses debit their source bucket. Transfers move the
    amount from source to destination, which must differ.
    """
    id: str
    date: date
    description: str
    amount: float = Field(gt=0)
    type: TransactionType
    source: TransactionSource = TransactionSource.GENERAL
    destination: Optional[TransactionSource] = None
    row_index: Optional[int] = Field(default=None, exclude=True)

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("description must not be empty")
        return value

    @model_validator(mode="after")
    def _check_routing(self):
        if self.type == TransactionType.TRANSFER:
            if self.destination is None:
                raise ValueError("transfer requires a destination")
            if self.destination == self.source:
                raise ValueError("transfer source and destination must differ")
        else:
            self.destination = None
        return self


def new_transaction_id(now: datetime | None = None) -> str:
    """Millisecond timestamp plus a random suffix, so ids from the same millisecond stay distinct."""
    now = now or datetime.now()
    return f"txn-{int(now.timestamp() * 1000)}-{uuid4().hex[:8]}"


def new_transaction(
    description: str,
    amount: float,
    date: date,
    type: TransactionType = TransactionType.EXPENSE,
    source: TransactionSource = TransactionSource.GENERAL,
    destination: TransactionSource | None = None,
) -> Transaction:
    """Builds a validated transaction with a fresh id. Raises pydantic.ValidationError on bad input."""
    return Transaction(
        id=new_transaction_id(),
        date=date,
        description=description,
        amount=amount,
        type=type,
        source=source,
        destination=destination if type == TransactionType.TRANSFER else None,
    )


def sort_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Newest first; ties keep their existing order."""
    return sorted(transactions, key=lambda tx: tx.date, reverse=True)


def error_messages(error: ValidationError) -> list[str]:
    """Plain messages from a ValidationError, without pydantic's 'Value error, ' prefix."""
    messages = []
    for err in error.errors():
        ctx_error = err.get("ctx", {}).get("error")
        messages.append(str(ctx_error) if ctx_error is not None else err["msg"])
    return messages
