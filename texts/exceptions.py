"""
Error taxonomy for the text store.

All application errors inherit from TextStoreError:

- StoreConnectionError: transient, drives the gateway's reconnect loop
- QueryError: request-scoped, mapped to a generic 500 by the views
- ConfigurationError: missing startup configuration, aborts the process
"""

from typing import Any, Optional

from django.core.exceptions import ImproperlyConfigured


class TextStoreError(Exception):
    """
    Base exception for all text store errors.

    Attributes:
        message: Human-readable error message
        details: Additional error details (for server-side logs only)
        recoverable: Whether the error can potentially be recovered from
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class StoreConnectionError(TextStoreError):
    """The database could not be reached or the connection was lost."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, details=details, recoverable=True)


class QueryError(TextStoreError):
    """
    A single store operation failed.

    Attributes:
        operation: Name of the store operation ("get", "upsert", ...)
        key: Record key the operation targeted, if any
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        key: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details=details, recoverable=False)
        self.operation = operation
        self.key = key


class NotConnected(QueryError):
    """An operation was attempted while the gateway had no live connection."""


class ConfigurationError(TextStoreError, ImproperlyConfigured):
    """
    Invalid or missing startup configuration.

    Raised before any request is served, e.g. when the database
    connection string is not defined.
    """

    def __init__(self, message: str, config_key: Optional[str] = None):
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details=details, recoverable=False)
