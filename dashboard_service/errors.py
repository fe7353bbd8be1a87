"""Failures reported by a stock service to the dashboard."""

from typing import Optional

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


class StockServiceError(Exception):
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class LoadError(StockServiceError):
    """The inventory list could not be fetched."""


class ClaimError(StockServiceError):
    """One unit of one item could not be claimed."""


def error_message(exc: BaseException) -> str:
    if isinstance(exc, StockServiceError) and exc.message:
        return exc.message
    return str(exc) or DEFAULT_ERROR_MESSAGE
