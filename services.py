"""Service layer: store access + business rules + reports.

Each service wraps one database session (one per request). Creates run the
rules engine before anything touches the store; store failures are rolled
back and surfaced as ``InternalError`` without leaking the driver message.
"""
import logging
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from errors import InternalError, NotFoundError, ValidationError, ValidationReason
from models import Category, Person, Transaction
from reports import category_totals, person_totals
from rules import (
    clean_amount,
    clean_text,
    ensure_category_unused,
    validate_category,
    validate_person,
    validate_transaction,
)
from schemas import (
    CategoryCreate,
    CategoryTotalReport,
    PersonCreate,
    PersonTotalReport,
    TransactionCreate,
    TransactionRead,
)

logger = logging.getLogger(__name__)


def save_and_refresh(session: Session, instance):
    """Persist and refresh an instance in the current session."""
    session.add(instance)
    session.commit()
    session.refresh(instance)
    return instance


class BaseService:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _store(self, action: str) -> Iterator[None]:
        """Roll back and translate store failures raised inside the block."""
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Store error while %s", action)
            raise InternalError() from exc


class PersonService(BaseService):

    def create(self, payload: PersonCreate) -> Person:
        name = clean_text(payload.name)
        try:
            validate_person(name, payload.age)
        except ValidationError as exc:
            logger.info("Rejected person: %s", exc.reason.value)
            raise

        person = Person(name=name, age=payload.age)
        with self._store("creating person"):
            save_and_refresh(self.session, person)
        logger.info("Created person %s", person.id)
        return person

    def list_all(self) -> list[Person]:
        with self._store("listing people"):
            return list(self.session.exec(select(Person)).all())

    def get_by_id(self, person_id: uuid.UUID) -> Person:
        with self._store("loading person"):
            person = self.session.get(Person, person_id)
        if person is None:
            raise NotFoundError("person")
        return person

    def delete(self, person_id: uuid.UUID) -> bool:
        """Delete a person and all of their transactions in one commit.

        Returns False when the person does not exist. If the store fails
        midway, nothing is deleted.
        """
        with self._store("deleting person"):
            person = self.session.get(Person, person_id)
            if person is None:
                return False

            result = self.session.exec(
                delete(Transaction).where(Transaction.person_id == person_id)
            )
            self.session.delete(person)
            self.session.commit()

        logger.info(
            "Deleted person %s and %d transaction(s)", person_id, result.rowcount
        )
        return True


class CategoryService(BaseService):

    def create(self, payload: CategoryCreate) -> Category:
        description = clean_text(payload.description)
        with self._store("checking category description"):
            existing = self.session.exec(
                select(Category.description).where(Category.description == description)
            ).all()
        try:
            validate_category(description, existing)
        except ValidationError as exc:
            logger.info("Rejected category: %s", exc.reason.value)
            raise

        category = Category(description=description, purpose=payload.purpose)
        with self._store("creating category"):
            try:
                save_and_refresh(self.session, category)
            except IntegrityError as exc:
                # a concurrent request inserted the same description first
                self.session.rollback()
                raise ValidationError(
                    ValidationReason.DUPLICATE_DESCRIPTION,
                    "Category with this description already exists.",
                ) from exc
        logger.info("Created category %s", category.id)
        return category

    def list_all(self) -> list[Category]:
        with self._store("listing categories"):
            return list(self.session.exec(select(Category)).all())

    def get_by_id(self, category_id: uuid.UUID) -> Category:
        with self._store("loading category"):
            category = self.session.get(Category, category_id)
        if category is None:
            raise NotFoundError("category")
        return category

    def delete(self, category_id: uuid.UUID) -> bool:
        """Delete an unused category. Returns False when it does not exist."""
        with self._store("deleting category"):
            category = self.session.get(Category, category_id)
            if category is None:
                return False

            in_use = self.session.exec(
                select(func.count())
                .select_from(Transaction)
                .where(Transaction.category_id == category_id)
            ).one()
            ensure_category_unused(in_use)

            self.session.delete(category)
            self.session.commit()

        logger.info("Deleted category %s", category_id)
        return True


class TransactionService(BaseService):

    def _read_query(self):
        return (
            select(Transaction, Person.name, Category.description)
            .join(Person, Transaction.person_id == Person.id)
            .join(Category, Transaction.category_id == Category.id)
        )

    @staticmethod
    def _to_read(
        transaction: Transaction, person_name: str, category_description: str
    ) -> TransactionRead:
        return TransactionRead(
            id=transaction.id,
            description=transaction.description,
            amount=transaction.amount,
            type=transaction.type,
            created_at=transaction.created_at,
            person_id=transaction.person_id,
            person_name=person_name,
            category_id=transaction.category_id,
            category_description=category_description,
        )

    def create(self, payload: TransactionCreate) -> TransactionRead:
        amount = clean_amount(payload.amount)
        description = clean_text(payload.description)

        with self._store("loading transaction references"):
            person: Optional[Person] = (
                self.session.get(Person, payload.person_id)
                if payload.person_id is not None
                else None
            )
            category: Optional[Category] = (
                self.session.get(Category, payload.category_id)
                if payload.category_id is not None
                else None
            )

        try:
            validate_transaction(amount, description, person, category, payload.type)
        except ValidationError as exc:
            logger.info("Rejected transaction: %s", exc.reason.value)
            raise

        transaction = Transaction(
            description=description,
            amount=amount,
            type=payload.type,
            person_id=person.id,
            category_id=category.id,
        )
        with self._store("creating transaction"):
            save_and_refresh(self.session, transaction)
        logger.info(
            "Created %s transaction %s for person %s",
            payload.type.name.lower(),
            transaction.id,
            person.id,
        )
        return self._to_read(transaction, person.name, category.description)

    def list_all(self) -> list[TransactionRead]:
        stmt = self._read_query().order_by(Transaction.created_at)
        with self._store("listing transactions"):
            rows = self.session.exec(stmt).all()
        return [self._to_read(t, name, desc) for t, name, desc in rows]

    def list_by_person(self, person_id: uuid.UUID) -> list[TransactionRead]:
        stmt = (
            self._read_query()
            .where(Transaction.person_id == person_id)
            .order_by(Transaction.created_at)
        )
        with self._store("listing transactions by person"):
            rows = self.session.exec(stmt).all()
        return [self._to_read(t, name, desc) for t, name, desc in rows]

    def get_by_id(self, transaction_id: uuid.UUID) -> TransactionRead:
        stmt = self._read_query().where(Transaction.id == transaction_id)
        with self._store("loading transaction"):
            row = self.session.exec(stmt).first()
        if row is None:
            raise NotFoundError("transaction")
        transaction, name, desc = row
        return self._to_read(transaction, name, desc)


class ReportService(BaseService):

    def by_person(self) -> PersonTotalReport:
        with self._store("building person report"):
            people = self.session.exec(select(Person)).all()
            transactions = self.session.exec(select(Transaction)).all()
        return person_totals(people, transactions)

    def by_category(self) -> CategoryTotalReport:
        with self._store("building category report"):
            categories = self.session.exec(select(Category)).all()
            transactions = self.session.exec(select(Transaction)).all()
        return category_totals(categories, transactions)
