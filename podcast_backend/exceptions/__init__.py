# Base exception class
from .base import PodcastBackendError

from .domain_exceptions import (
    ValidationError,
    NotFoundError,
    ItemNotFoundError,
    StoreError,
    ConflictError,
    RetryableError,
    ConsistencyFault,
)
from .error_codes import ClipError, PodcastError

__all__ = [
    # Base exception
    "PodcastBackendError",

    # Domain exceptions (alphabetically ordered)
    "ConflictError",
    "ConsistencyFault",
    "ItemNotFoundError",
    "NotFoundError",
    "RetryableError",
    "StoreError",
    "ValidationError",

    # Error codes
    "ClipError",
    "PodcastError",
]
