"""Main FastAPI application for the Expense Control API."""
import datetime as dt
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Iterator, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlmodel import Session

from database import Database
from errors import AppError, InternalError, NotFoundError, ValidationError
from schemas import (
    ApiResponse,
    CategoryCreate,
    CategoryRead,
    CategoryTotalReport,
    PersonCreate,
    PersonRead,
    PersonTotalReport,
    TransactionCreate,
    TransactionRead,
)
from services import CategoryService, PersonService, ReportService, TransactionService
from settings import Settings, configure_logging

logger = logging.getLogger(__name__)


def envelope(
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
    error_code: Optional[str] = None,
    reason: Optional[str] = None,
) -> JSONResponse:
    """Wrap a payload in the standard {success, message, data?, errorCode?} body."""
    body = ApiResponse[Any](
        success=error_code is None,
        message=message,
        data=data,
        error_code=error_code,
        reason=reason,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


# The store handle lives on app.state; it is opened at startup and closed at shutdown.
def get_session(request: Request) -> Iterator[Session]:
    """Provide a database session per request."""
    with request.app.state.database.session() as session:
        yield session


def get_person_service(session: Session = Depends(get_session)) -> PersonService:
    return PersonService(session)


def get_category_service(session: Session = Depends(get_session)) -> CategoryService:
    return CategoryService(session)


def get_transaction_service(session: Session = Depends(get_session)) -> TransactionService:
    return TransactionService(session)


def get_report_service(session: Session = Depends(get_session)) -> ReportService:
    return ReportService(session)


router = APIRouter()


# PEOPLE ENDPOINTS

@router.get("/people", response_model=ApiResponse[list[PersonRead]])
def list_people(service: PersonService = Depends(get_person_service)):
    """List every person."""
    people = [PersonRead.model_validate(p) for p in service.list_all()]
    return envelope("People retrieved successfully", people)


@router.get("/people/{person_id}", response_model=ApiResponse[PersonRead])
def get_person(person_id: uuid.UUID, service: PersonService = Depends(get_person_service)):
    person = PersonRead.model_validate(service.get_by_id(person_id))
    return envelope("Person retrieved successfully", person)


@router.post("/people", response_model=ApiResponse[PersonRead], status_code=201)
def create_person(payload: PersonCreate, service: PersonService = Depends(get_person_service)):
    """Create a person after checking name and age."""
    person = PersonRead.model_validate(service.create(payload))
    return envelope("Person created successfully", person, status.HTTP_201_CREATED)


# Deleting a person also deletes their transactions (same commit).
@router.delete("/people/{person_id}", response_model=ApiResponse[str])
def delete_person(person_id: uuid.UUID, service: PersonService = Depends(get_person_service)):
    if not service.delete(person_id):
        raise NotFoundError("person")
    return envelope(
        "Person deleted successfully. Associated transactions were also deleted.",
        str(person_id),
    )


# CATEGORY ENDPOINTS

@router.get("/categories", response_model=ApiResponse[list[CategoryRead]])
def list_categories(service: CategoryService = Depends(get_category_service)):
    """List every category."""
    categories = [CategoryRead.model_validate(c) for c in service.list_all()]
    return envelope("Categories retrieved successfully", categories)


@router.get("/categories/{category_id}", response_model=ApiResponse[CategoryRead])
def get_category(
    category_id: uuid.UUID,
    service: CategoryService = Depends(get_category_service),
):
    category = CategoryRead.model_validate(service.get_by_id(category_id))
    return envelope("Category retrieved successfully", category)


@router.post("/categories", response_model=ApiResponse[CategoryRead], status_code=201)
def create_category(
    payload: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
):
    """Create a category; descriptions are unique."""
    category = CategoryRead.model_validate(service.create(payload))
    return envelope("Category created successfully", category, status.HTTP_201_CREATED)


# A category that still has transactions cannot be deleted.
@router.delete("/categories/{category_id}", response_model=ApiResponse[str])
def delete_category(
    category_id: uuid.UUID,
    service: CategoryService = Depends(get_category_service),
):
    if not service.delete(category_id):
        raise NotFoundError("category")
    return envelope("Category deleted successfully", str(category_id))


# TRANSACTION ENDPOINTS

@router.get("/transactions", response_model=ApiResponse[list[TransactionRead]])
def list_transactions(service: TransactionService = Depends(get_transaction_service)):
    return envelope("Transactions retrieved successfully", service.list_all())


@router.get(
    "/transactions/by-person/{person_id}",
    response_model=ApiResponse[list[TransactionRead]],
)
def list_transactions_by_person(
    person_id: uuid.UUID,
    service: TransactionService = Depends(get_transaction_service),
):
    """List one person's transactions (empty list for an unknown id)."""
    return envelope("Transactions retrieved successfully", service.list_by_person(person_id))


@router.get("/transactions/{transaction_id}", response_model=ApiResponse[TransactionRead])
def get_transaction(
    transaction_id: uuid.UUID,
    service: TransactionService = Depends(get_transaction_service),
):
    return envelope("Transaction retrieved successfully", service.get_by_id(transaction_id))


# Transactions are immutable: there is no update or delete endpoint.
@router.post("/transactions", response_model=ApiResponse[TransactionRead], status_code=201)
def create_transaction(
    payload: TransactionCreate,
    service: TransactionService = Depends(get_transaction_service),
):
    """Create a transaction after running every business rule."""
    transaction = service.create(payload)
    return envelope("Transaction created successfully", transaction, status.HTTP_201_CREATED)


# REPORTS

@router.get("/reports/by-person", response_model=ApiResponse[PersonTotalReport])
def report_by_person(service: ReportService = Depends(get_report_service)):
    """Income, expense and balance per person, plus grand totals."""
    return envelope("Person totals retrieved successfully", service.by_person())


@router.get("/reports/by-category", response_model=ApiResponse[CategoryTotalReport])
def report_by_category(service: ReportService = Depends(get_report_service)):
    """Income, expense and balance per category, plus grand totals."""
    return envelope("Category totals retrieved successfully", service.by_category())


# ERROR HANDLERS

async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    reason = exc.reason.value if isinstance(exc, ValidationError) else None
    return envelope(
        exc.message, status_code=exc.status_code, error_code=exc.error_code, reason=reason
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and path params are the caller's fault: 400, not 422."""
    errors = exc.errors()
    message = "Invalid request."
    if errors:
        first = errors[0]
        loc = [p for p in first.get("loc", ()) if p not in ("body", "path", "query")]
        field = ".".join(str(part) for part in loc)
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return envelope(
        message,
        status_code=status.HTTP_400_BAD_REQUEST,
        error_code=ValidationError.error_code,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return envelope(
        InternalError.GENERIC_MESSAGE,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code=InternalError.error_code,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI app. The database is opened by the lifespan handler."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(
            settings.database_url,
            echo=settings.sql_echo,
            retries=settings.db_connect_retries,
            retry_delay=settings.db_retry_delay,
        )
        app.state.database = database.open()
        logger.info("%s %s started", settings.app_name, settings.app_version)
        try:
            yield
        finally:
            database.close()

    app = FastAPI(title="Expense Control API", version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    Instrumentator().instrument(app).expose(app)

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # API endpoint for quick health checks
    @app.get("/")
    def root():
        return {"message": "Expense Control API is running. See /health for status."}

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
            "app": settings.app_name,
            "version": settings.app_version,
        }

    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
