"""Income/expense totals per person and per category."""
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Iterable

from models import Category, Person, Transaction, TransactionType
from schemas import CategoryTotal, CategoryTotalReport, PersonTotal, PersonTotalReport

CENTS = Decimal("0.01")


def round_money(value: Any) -> Decimal:
    """Round to 2 decimal places with HALF_UP (normal money rounding)."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _sum_by_owner(
    transactions: Iterable[Transaction],
    owner_of: Callable[[Transaction], uuid.UUID],
) -> dict[uuid.UUID, dict[TransactionType, Decimal]]:
    """Accumulate amounts per owner id and transaction type, in exact decimals."""
    sums: dict[uuid.UUID, dict[TransactionType, Decimal]] = {}
    for t in transactions:
        bucket = sums.setdefault(
            owner_of(t),
            {TransactionType.INCOME: Decimal("0"), TransactionType.EXPENSE: Decimal("0")},
        )
        bucket[TransactionType(t.type)] += Decimal(str(t.amount))
    return sums


def person_totals(
    people: Iterable[Person],
    transactions: Iterable[Transaction],
) -> PersonTotalReport:
    """
    Build the per-person report.

    Every person appears once, in the order given, even with no transactions.
    Grand totals are the sums of the per-person totals, so transactions whose
    person is not in ``people`` are left out of both.
    """
    sums = _sum_by_owner(transactions, lambda t: t.person_id)

    entries: list[PersonTotal] = []
    grand_income = Decimal("0")
    grand_expense = Decimal("0")
    for person in people:
        bucket = sums.get(person.id, {})
        income = round_money(bucket.get(TransactionType.INCOME, 0))
        expense = round_money(bucket.get(TransactionType.EXPENSE, 0))
        grand_income += income
        grand_expense += expense
        entries.append(
            PersonTotal(
                person_id=person.id,
                person_name=person.name,
                total_income=income,
                total_expense=expense,
            )
        )

    return PersonTotalReport(
        people=entries,
        grand_total_income=round_money(grand_income),
        grand_total_expense=round_money(grand_expense),
    )


def category_totals(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
) -> CategoryTotalReport:
    """Same as :func:`person_totals`, grouped by category."""
    sums = _sum_by_owner(transactions, lambda t: t.category_id)

    entries: list[CategoryTotal] = []
    grand_income = Decimal("0")
    grand_expense = Decimal("0")
    for category in categories:
        bucket = sums.get(category.id, {})
        income = round_money(bucket.get(TransactionType.INCOME, 0))
        expense = round_money(bucket.get(TransactionType.EXPENSE, 0))
        grand_income += income
        grand_expense += expense
        entries.append(
            CategoryTotal(
                category_id=category.id,
                category_description=category.description,
                total_income=income,
                total_expense=expense,
            )
        )

    return CategoryTotalReport(
        categories=entries,
        grand_total_income=round_money(grand_income),
        grand_total_expense=round_money(grand_expense),
    )
