"""
Error taxonomy shared by the store adapters, services and HTTP layer.
"""

from __future__ import annotations


class QuizboardError(Exception):
    """Base class for expected, domain-level failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(QuizboardError):
    pass


class ValidationError(QuizboardError):
    pass


class StoreError(QuizboardError):
    """The document store failed and retrying will not help."""


class TransientStoreError(StoreError):
    """The document store failed in a way that is safe to retry."""
