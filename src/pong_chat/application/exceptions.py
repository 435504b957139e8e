from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ValidationError(AppError):
    pass


class ExternalLookupError(AppError):
    """The user service failed, timed out or answered with a non-success status."""


class PersistenceError(AppError):
    """A database write did not go through."""
