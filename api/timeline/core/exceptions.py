"""
Custom exceptions for the application.
"""
from typing import List, Optional


class TimelineException(Exception):
    """Base exception for all Timeline application exceptions."""
    pass


class ValidationError(TimelineException):
    """Raised when validation fails."""
    pass


class NotFoundError(TimelineException):
    """Raised when a requested resource is not found."""
    pass


class ConflictError(TimelineException):
    """Raised when there's a conflict (e.g., deleting an era still in use)."""
    pass


class GenerationError(TimelineException):
    """Raised when the generative-text API fails or returns unusable output."""
    pass


class PersistenceError(TimelineException):
    """Raised when a create/update/delete/list against the store fails."""
    pass


class ReconcileError(PersistenceError):
    """
    Raised when reconciling a child list fails part-way.

    The transaction is rolled back before this is raised, so `applied` lists
    the submitted indices that had been written (and were undone) and
    `failed_index` the index whose write failed. A failure while deleting
    trailing rows reports the index of the existing row being deleted.
    """

    def __init__(
        self,
        message: str,
        collection: str,
        parent_id: int,
        applied: Optional[List[int]] = None,
        failed_index: Optional[int] = None,
    ):
        super().__init__(message)
        self.collection = collection
        self.parent_id = parent_id
        self.applied = applied or []
        self.failed_index = failed_index
