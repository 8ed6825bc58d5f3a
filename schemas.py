"""Pydantic schemas for API payloads, reports and the response envelope."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, computed_field, field_validator
from pydantic.alias_generators import to_camel

from models import CategoryPurpose, TransactionType

NAME_MAX_LEN = 200
CATEGORY_DESCRIPTION_MAX_LEN = 200
TRANSACTION_DESCRIPTION_MAX_LEN = 400

# Decimal internally, a plain JSON number on the wire. The number goes through
# float, so it is exact only up to about 15 significant digits; stored amounts
# stay below rules.MAX_AMOUNT (16 integer digits).
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

T = TypeVar("T")


class ApiModel(BaseModel):
    """camelCase on the wire; snake_case names are accepted too."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class StripTextMixin:
    """Trim surrounding whitespace from the free-text fields."""
    @field_validator("name", "description", mode="before", check_fields=False)
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


# Missing fields fall back to empty/zero values so the rules engine reports
# the specific reason (e.g. InvalidAge) instead of a generic schema error.
class PersonCreate(StripTextMixin, ApiModel):
    """Payload for creating a person."""
    name: str = Field(default="", max_length=NAME_MAX_LEN)
    age: int = 0


class PersonRead(ApiModel):
    id: uuid.UUID
    name: str
    age: int


class CategoryCreate(StripTextMixin, ApiModel):
    """Payload for creating a category."""
    description: str = Field(default="", max_length=CATEGORY_DESCRIPTION_MAX_LEN)
    purpose: CategoryPurpose = CategoryPurpose.EXPENSE


class CategoryRead(ApiModel):
    id: uuid.UUID
    description: str
    purpose: CategoryPurpose


class TransactionCreate(StripTextMixin, ApiModel):
    """Payload for creating a transaction."""
    description: str = Field(default="", max_length=TRANSACTION_DESCRIPTION_MAX_LEN)
    amount: Decimal = Decimal("0")
    type: TransactionType = TransactionType.EXPENSE
    person_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None


class TransactionRead(ApiModel):
    """A transaction with the names of the person and category it points to."""
    id: uuid.UUID
    description: str
    amount: Money
    type: TransactionType
    created_at: datetime
    person_id: uuid.UUID
    person_name: str = ""
    category_id: uuid.UUID
    category_description: str = ""


# REPORTS

class PersonTotal(ApiModel):
    person_id: uuid.UUID
    person_name: str
    total_income: Money = Decimal("0.00")
    total_expense: Money = Decimal("0.00")

    @computed_field
    @property
    def balance(self) -> Money:
        return self.total_income - self.total_expense


class PersonTotalReport(ApiModel):
    """Totals per person plus grand totals over everyone."""
    people: list[PersonTotal] = []
    grand_total_income: Money = Decimal("0.00")
    grand_total_expense: Money = Decimal("0.00")

    @computed_field(alias="grandTotalBalance")
    @property
    def grand_total_balance(self) -> Money:
        return self.grand_total_income - self.grand_total_expense


class CategoryTotal(ApiModel):
    category_id: uuid.UUID
    category_description: str
    total_income: Money = Decimal("0.00")
    total_expense: Money = Decimal("0.00")

    @computed_field
    @property
    def balance(self) -> Money:
        return self.total_income - self.total_expense


class CategoryTotalReport(ApiModel):
    """Totals per category plus grand totals over every category."""
    categories: list[CategoryTotal] = []
    grand_total_income: Money = Decimal("0.00")
    grand_total_expense: Money = Decimal("0.00")

    @computed_field(alias="grandTotalBalance")
    @property
    def grand_total_balance(self) -> Money:
        return self.grand_total_income - self.grand_total_expense


# ENVELOPE

class ApiResponse(ApiModel, Generic[T]):
    """Standard body of every API response."""
    success: bool
    message: str
    data: Optional[T] = None
    error_code: Optional[str] = None
    reason: Optional[str] = None
