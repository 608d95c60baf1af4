"""
Error types shared by the matching and ingestion code paths.

Per-record ingestion failures never escape the pipeline; they are converted
into entries of the import result. Only request-level failures (unknown
profile, malformed batch, failed sweep) are raised to the caller.
"""

from typing import List, Optional


class JobBoardError(Exception):
    """Base class for all jobboard errors."""
    pass


class ValidationError(JobBoardError):
    """Raised when input is malformed before any processing happens."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class NotFoundError(JobBoardError):
    """Raised when a profile or job lookup finds nothing."""
    pass


class PersistenceError(JobBoardError):
    """Raised when the storage layer fails for a single unit of work."""
    pass


class MissingIdentifierError(JobBoardError):
    """Raised when an entity without an id is used where identity is required."""
    pass


class FeedError(JobBoardError):
    """Raised when a remote import feed cannot be fetched."""
    pass
