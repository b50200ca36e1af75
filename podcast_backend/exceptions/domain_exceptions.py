"""
Domain-Specific Exceptions for the Podcast Backend

Organized by category:
1. Client Input Errors (never retried)
2. Resource Not Found Errors
3. Store Errors (propagated unchanged, never retried here)
4. Consistency Faults

Client-facing errors carry an optional ``error_code`` (see error_codes.py) so an
outer layer can answer with a stable machine-readable code.
"""

from enum import IntEnum
from http import HTTPStatus
from typing import Any, Dict, Optional

from .base import PodcastBackendError


# =============================================================================
# Client Input Errors
# =============================================================================

class ValidationError(PodcastBackendError):
    """Raised when request input is missing or malformed.

    Used for:
    - Missing account, episode, clip or podcast ids
    - Incomplete clip data and invalid time ranges
    - Malformed clip ids and composite pagination tokens
    """

    status_code = HTTPStatus.BAD_REQUEST

    def __init__(
        self,
        message: str,
        error_code: Optional[IntEnum] = None,
        errors: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        """Initialize validation error.

        Args:
            message: Human-readable error message
            error_code: Stable error code for clients
            errors: Dictionary of field-level validation errors
            original_error: The original exception that caused this error
        """
        self.error_code = error_code
        self.errors = errors or {}
        context = {}
        if error_code is not None:
            context['error_code'] = int(error_code)
        if self.errors:
            context['validation_errors'] = self.errors
        super().__init__(message, original_error, context)


# =============================================================================
# Resource Not Found Errors
# =============================================================================

class NotFoundError(PodcastBackendError):
    """Raised when a referenced episode, clip or podcast does not exist."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(
        self,
        message: str,
        error_code: Optional[IntEnum] = None,
        resource_type: Optional[str] = None,
        resource_name: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        """Initialize not found error.

        Args:
            message: Human-readable error message
            error_code: Stable error code for clients
            resource_type: Type of resource not found (e.g., 'episode', 'clip')
            resource_name: Identifier of the resource not found
            original_error: The original exception that caused this error
        """
        self.error_code = error_code
        self.resource_type = resource_type
        self.resource_name = resource_name
        context = {}
        if error_code is not None:
            context['error_code'] = int(error_code)
        if resource_type:
            context['resource_type'] = resource_type
        if resource_name:
            context['resource_name'] = resource_name
        super().__init__(message, original_error, context)


class ItemNotFoundError(NotFoundError):
    """Raised when a keyed store item is absent for an operation that requires it.

    Used for:
    - Update/Delete operations on non-existent items
    - Conditional operations that expect existing items
    """

    def __init__(self, table_name: str, key: dict, original_error: Optional[Exception] = None):
        """Initialize item not found error.

        Args:
            table_name: Name of the DynamoDB table
            key: The key that was not found
            original_error: The original exception that caused this error
        """
        self.table_name = table_name
        self.key = key
        super().__init__(
            f"Item not found in table '{table_name}' with key: {key}",
            resource_type='item',
            resource_name=table_name,
            original_error=original_error
        )
        self.context['key'] = key


# =============================================================================
# Store Errors
# =============================================================================

class StoreError(PodcastBackendError):
    """Raised when an underlying store call fails.

    The botocore exception is kept as ``original_error``. Nothing in this
    package retries a failed store call.
    """

    status_code = HTTPStatus.BAD_GATEWAY

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)


class ConflictError(StoreError):
    """Raised when a conditional write fails.

    Used for:
    - ConditionalCheckFailedException from DynamoDB
    - Concurrent clip creations colliding on the same key (with overwrite protection on)
    - Follow entries colliding on the same follow timestamp
    """

    status_code = HTTPStatus.CONFLICT

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize conflict error.

        Args:
            message: Human-readable error message
            resource_id: ID of the conflicting resource
            original_error: The original exception that caused this error
        """
        self.resource_id = resource_id
        context = {}
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, original_error, context)


class RetryableError(StoreError):
    """Raised for throttling and temporary unavailability.

    Callers decide whether to retry; the table client never does.
    """

    status_code = HTTPStatus.SERVICE_UNAVAILABLE

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None, original_error: Optional[Exception] = None):
        self.retry_after_seconds = retry_after_seconds
        context = {}
        if retry_after_seconds:
            context['retry_after_seconds'] = retry_after_seconds
        super().__init__(message, original_error, context)


# =============================================================================
# Consistency Faults
# =============================================================================

class ConsistencyFault(PodcastBackendError):
    """Raised when stored data contradicts itself in a way the request cannot recover from.

    Used for:
    - Follow entries exist but none of the referenced podcasts resolve
    - A stored row that cannot be parsed into its domain model
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
