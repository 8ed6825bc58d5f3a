"""Business rules for people, categories and transactions.

Every check is a pure function: it either returns quietly or raises
``errors.ValidationError`` with the specific reason, so callers can show an
actionable message. Nothing here touches the database.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from errors import ValidationError, ValidationReason
from models import Category, CategoryPurpose, Person, TransactionType
from reports import round_money

ADULT_AGE = 18

# Column limits: age is a 32-bit integer, amount is NUMERIC(18, 2).
MAX_AGE = 2_147_483_647
MAX_AMOUNT = Decimal("1e16")

EXPENSE_PURPOSES = frozenset({CategoryPurpose.EXPENSE, CategoryPurpose.BOTH})
INCOME_PURPOSES = frozenset({CategoryPurpose.INCOME, CategoryPurpose.BOTH})


def clean_text(value: Any) -> str:
    """Trim a text input; None becomes an empty string."""
    if value is None:
        return ""
    return str(value).strip()


def clean_amount(value: Any) -> Optional[Decimal]:
    """Round an amount to cents; None when it is not a number the store can hold."""
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return None
    if not amount.is_finite() or abs(amount) >= MAX_AMOUNT:
        return None
    return round_money(amount)


def _amount_is_valid(amount: Optional[Decimal]) -> bool:
    return amount is not None and amount.is_finite() and 0 < amount < MAX_AMOUNT


def validate_person(name: Optional[str], age: int) -> None:
    if not clean_text(name):
        raise ValidationError(ValidationReason.INVALID_NAME, "Name cannot be empty.")
    if age is None or age <= 0 or age > MAX_AGE:
        raise ValidationError(
            ValidationReason.INVALID_AGE, "Age must be a positive number."
        )


def validate_category(
    description: Optional[str],
    existing_descriptions: Iterable[str],
) -> None:
    """Reject a blank description or one already taken (exact match after trimming)."""
    cleaned = clean_text(description)
    if not cleaned:
        raise ValidationError(
            ValidationReason.INVALID_DESCRIPTION, "Description cannot be empty."
        )
    if cleaned in {clean_text(d) for d in existing_descriptions}:
        raise ValidationError(
            ValidationReason.DUPLICATE_DESCRIPTION,
            "Category with this description already exists.",
        )


def validate_transaction(
    amount: Optional[Decimal],
    description: Optional[str],
    person: Optional[Person],
    category: Optional[Category],
    tx_type: TransactionType,
) -> None:
    """Check a proposed transaction; the first failing rule wins.

    Order: amount, description, person exists, minors cannot receive income,
    category exists, category purpose matches the transaction type.
    """
    if not _amount_is_valid(amount):
        raise ValidationError(
            ValidationReason.INVALID_AMOUNT, "Amount must be a positive value."
        )

    if not clean_text(description):
        raise ValidationError(
            ValidationReason.INVALID_DESCRIPTION, "Description cannot be empty."
        )

    if person is None:
        raise ValidationError(ValidationReason.PERSON_NOT_FOUND, "Person not found.")

    if person.age < ADULT_AGE and tx_type == TransactionType.INCOME:
        raise ValidationError(
            ValidationReason.MINOR_CANNOT_RECEIVE_INCOME,
            f"Person under {ADULT_AGE} years old can only register expenses, not income.",
        )

    if category is None:
        raise ValidationError(
            ValidationReason.CATEGORY_NOT_FOUND, "Category not found."
        )

    if tx_type == TransactionType.EXPENSE and category.purpose not in EXPENSE_PURPOSES:
        raise ValidationError(
            ValidationReason.CATEGORY_NOT_VALID_FOR_EXPENSE,
            "Selected category is not valid for expense transactions.",
        )

    if tx_type == TransactionType.INCOME and category.purpose not in INCOME_PURPOSES:
        raise ValidationError(
            ValidationReason.CATEGORY_NOT_VALID_FOR_INCOME,
            "Selected category is not valid for income transactions.",
        )


def ensure_category_unused(transaction_count: int) -> None:
    """A category cannot be deleted while transactions still reference it."""
    if transaction_count > 0:
        raise ValidationError(
            ValidationReason.CATEGORY_IN_USE,
            "Category is in use and cannot be deleted.",
        )
