"""
app/domain/errors.py

Domain-layer exceptions for the ingestion pipeline.
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base exception for all domain failures.
    """

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class DomainValidationError(DomainError):
    """
    Raised when a business-rule or shape check fails.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ParsingError(DomainError):
    """
    Raised (or recorded) when one row/column of a file cannot be parsed.
    """

    code = "PARSING_ERROR"

    def __init__(self, message: str, *, row: int, column: str | None = None) -> None:
        super().__init__(message)
        self.row = row
        self.column = column


class BusinessRuleError(DomainError):
    """
    Raised when a semantic invariant is violated.
    """

    code = "BUSINESS_RULE_ERROR"

    def __init__(self, message: str, *, rule: str) -> None:
        super().__init__(message)
        self.rule = rule


class NotFoundError(DomainError):
    """
    Raised when an entity, file, or score is missing by id.
    """

    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(f"{entity_type} with ID {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class DuplicateError(DomainError):
    """
    Raised when a driving-field value collides where uniqueness is expected.
    """

    code = "DUPLICATE"

    def __init__(self, entity_type: str, field: str, value: str) -> None:
        super().__init__(f"duplicate {entity_type} found: {field} = {value}")
        self.entity_type = entity_type
        self.field = field
        self.value = value
