import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import IntEnum

from sqlmodel import SQLModel, Field


class CategoryPurpose(IntEnum):
    """Which transaction types a category accepts."""
    EXPENSE = 0
    INCOME = 1
    BOTH = 2


class TransactionType(IntEnum):
    EXPENSE = 0
    INCOME = 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# These classes describe what data will be stored in the database.
# Each class = one table.
# Relations are plain foreign-key columns; related rows are looked up by id.
class Person(SQLModel, table=True):
    """Someone who owns transactions.
    Deleting a person deletes their transactions in the same commit.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, max_length=200)
    age: int


class Category(SQLModel, table=True):
    """Classifies transactions.
    The description is unique; 'purpose' restricts which transaction types may use it.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    description: str = Field(index=True, unique=True, max_length=200)
    purpose: CategoryPurpose = Field(default=CategoryPurpose.EXPENSE)


class Transaction(SQLModel, table=True):
    """An income or an expense of one person, filed under one category.
    Rows are never updated after creation.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    description: str = Field(max_length=400)
    amount: Decimal = Field(max_digits=18, decimal_places=2)  # always > 0
    type: TransactionType = Field(default=TransactionType.EXPENSE, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    person_id: uuid.UUID = Field(foreign_key="person.id", ondelete="CASCADE", index=True)
    category_id: uuid.UUID = Field(
        foreign_key="category.id", ondelete="RESTRICT", index=True
    )
