"""Error taxonomy shared by the rules engine, the services and the API layer."""
from enum import Enum
from typing import Optional


class ValidationReason(str, Enum):
    """Why a proposed entity was rejected."""
    INVALID_NAME = "InvalidName"
    INVALID_AGE = "InvalidAge"
    INVALID_DESCRIPTION = "InvalidDescription"
    DUPLICATE_DESCRIPTION = "DuplicateDescription"
    INVALID_AMOUNT = "InvalidAmount"
    PERSON_NOT_FOUND = "PersonNotFound"
    MINOR_CANNOT_RECEIVE_INCOME = "MinorCannotReceiveIncome"
    CATEGORY_NOT_FOUND = "CategoryNotFound"
    CATEGORY_NOT_VALID_FOR_EXPENSE = "CategoryNotValidForExpense"
    CATEGORY_NOT_VALID_FOR_INCOME = "CategoryNotValidForIncome"
    CATEGORY_IN_USE = "CategoryInUse"


class AppError(Exception):
    """Base class for errors that map onto an API response."""
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Input is malformed or breaks a business rule (the caller's fault)."""
    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(self, reason: ValidationReason, message: str):
        super().__init__(message)
        self.reason = reason


class NotFoundError(AppError):
    """A referenced id does not exist."""
    status_code = 404

    def __init__(self, entity: str, message: Optional[str] = None):
        super().__init__(message or f"{entity.capitalize()} not found")
        self.entity = entity
        self.error_code = f"{entity.upper()}_NOT_FOUND"


class InternalError(AppError):
    """The store is unavailable or something unexpected failed."""
    GENERIC_MESSAGE = "An unexpected error occurred."

    def __init__(self, message: str = GENERIC_MESSAGE):
        super().__init__(message)
