"""Error taxonomy for the research pipeline."""
from __future__ import annotations


class ResearchError(Exception):
    """Base class for pipeline errors."""


class FatalInputError(ResearchError):
    """Invalid run input or unknown city. Raised before any category runs."""


class UnknownCategoryError(ResearchError, KeyError):
    """No prompt template exists for the category."""

    def __str__(self) -> str:
        return f"Unknown research category: {self.args[0] if self.args else ''}"


class TransientFetchError(ResearchError):
    """A category's text-generation call failed."""

    def __init__(self, category: str, cause: BaseException):
        super().__init__(f"{category}: {type(cause).__name__}: {cause}")
        self.category = category
        self.cause = cause


class PersistenceMarkerError(ResearchError):
    """A run-marker write failed."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause
