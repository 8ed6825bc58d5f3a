from decimal import Decimal
import uuid

import pytest
from sqlalchemy.exc import OperationalError

from errors import InternalError, NotFoundError, ValidationError, ValidationReason
from models import CategoryPurpose, TransactionType
from schemas import CategoryCreate, PersonCreate, TransactionCreate
from services import CategoryService, PersonService, ReportService, TransactionService


def store_down(*args, **kwargs):
    raise OperationalError("COMMIT", {}, Exception("store unavailable"))


@pytest.fixture
def seeded(session):
    """Bob with one expense and one income, in a Both category."""
    people = PersonService(session)
    categories = CategoryService(session)
    transactions = TransactionService(session)

    bob = people.create(PersonCreate(name="Bob", age=30))
    cat = categories.create(CategoryCreate(description="Geral", purpose=CategoryPurpose.BOTH))
    transactions.create(
        TransactionCreate(description="Rent", amount=Decimal("800"), person_id=bob.id, category_id=cat.id)
    )
    transactions.create(
        TransactionCreate(
            description="Salary",
            amount=Decimal("2000"),
            type=TransactionType.INCOME,
            person_id=bob.id,
            category_id=cat.id,
        )
    )
    return {
        "people": people,
        "categories": categories,
        "transactions": transactions,
        "bob_id": bob.id,
        "category_id": cat.id,
    }


def test_create_person_trims_name(session):
    person = PersonService(session).create(PersonCreate(name="  Bob ", age=30))
    assert person.name == "Bob"
    assert person.id is not None


def test_get_person_not_found(session):
    with pytest.raises(NotFoundError) as exc_info:
        PersonService(session).get_by_id(uuid.uuid4())
    assert exc_info.value.error_code == "PERSON_NOT_FOUND"
    assert exc_info.value.status_code == 404


def test_delete_person_removes_transactions(seeded):
    people, transactions = seeded["people"], seeded["transactions"]
    assert len(transactions.list_by_person(seeded["bob_id"])) == 2

    assert people.delete(seeded["bob_id"]) is True

    assert transactions.list_by_person(seeded["bob_id"]) == []
    assert transactions.list_all() == []
    with pytest.raises(NotFoundError):
        people.get_by_id(seeded["bob_id"])


def test_delete_missing_person_returns_false(session):
    assert PersonService(session).delete(uuid.uuid4()) is False


def test_failed_delete_leaves_person_and_transactions(seeded, session, monkeypatch):
    people, transactions = seeded["people"], seeded["transactions"]

    monkeypatch.setattr(session, "commit", store_down)
    with pytest.raises(InternalError) as exc_info:
        people.delete(seeded["bob_id"])
    monkeypatch.undo()

    # the driver message is not exposed
    assert "store unavailable" not in exc_info.value.message
    assert people.get_by_id(seeded["bob_id"]).name == "Bob"
    assert len(transactions.list_by_person(seeded["bob_id"])) == 2


def test_duplicate_category_rejected(seeded):
    with pytest.raises(ValidationError) as exc_info:
        seeded["categories"].create(CategoryCreate(description=" Geral "))
    assert exc_info.value.reason == ValidationReason.DUPLICATE_DESCRIPTION


def test_unique_index_backs_up_duplicate_check(seeded, monkeypatch):
    # simulate a concurrent create slipping past the pre-check
    monkeypatch.setattr("services.validate_category", lambda description, existing: None)

    with pytest.raises(ValidationError) as exc_info:
        seeded["categories"].create(CategoryCreate(description="Geral"))
    assert exc_info.value.reason == ValidationReason.DUPLICATE_DESCRIPTION

    assert len(seeded["categories"].list_all()) == 1


def test_category_in_use_cannot_be_deleted(seeded):
    with pytest.raises(ValidationError) as exc_info:
        seeded["categories"].delete(seeded["category_id"])
    assert exc_info.value.reason == ValidationReason.CATEGORY_IN_USE
    assert seeded["categories"].get_by_id(seeded["category_id"])


def test_store_failure_on_read_is_internal_error(session, monkeypatch):
    monkeypatch.setattr(session, "exec", store_down)
    with pytest.raises(InternalError):
        CategoryService(session).list_all()


def test_transaction_create_returns_names(seeded):
    row = seeded["transactions"].create(
        TransactionCreate(
            description=" Bus ",
            amount=Decimal("4.4"),
            person_id=seeded["bob_id"],
            category_id=seeded["category_id"],
        )
    )
    assert row.description == "Bus"
    assert row.amount == Decimal("4.40")
    assert row.person_name == "Bob"
    assert row.category_description == "Geral"
    assert seeded["transactions"].get_by_id(row.id).id == row.id


def test_rejected_transaction_is_not_stored(seeded, session):
    kid = seeded["people"].create(PersonCreate(name="Ana", age=17))
    with pytest.raises(ValidationError):
        seeded["transactions"].create(
            TransactionCreate(
                description="Allowance",
                amount=Decimal("10"),
                type=TransactionType.INCOME,
                person_id=kid.id,
                category_id=seeded["category_id"],
            )
        )
    assert seeded["transactions"].list_by_person(kid.id) == []


def test_report_service(seeded, session):
    reports = ReportService(session)

    by_person = reports.by_person()
    assert by_person.people[0].total_income == Decimal("2000.00")
    assert by_person.people[0].total_expense == Decimal("800.00")
    assert by_person.grand_total_balance == Decimal("1200.00")

    by_category = reports.by_category()
    assert by_category.categories[0].balance == Decimal("1200.00")
