"""Typed failures raised by the ledger access layer.

Every operation either completes or raises one of the errors below. None of
them is retried internally; the dispatcher reports the message to the caller.

``status_code`` is the HTTP status the API answers with and ``result`` is the
label recorded in the invocation metrics.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for all ledger access failures."""

    status_code = 500
    result = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """An argument is missing, empty, oversized or malformed."""

    status_code = 422
    result = "validation_error"


class NotFoundError(LedgerError):
    """The requested Messenger or Message is absent from the ledger."""

    status_code = 404
    result = "not_found"


class ConflictError(LedgerError):
    """An entity with the same id already exists."""

    status_code = 409
    result = "conflict"


class AuthorizationError(LedgerError):
    """The authorizing company does not match the stored one."""

    status_code = 403
    result = "unauthorized"


class HostError(LedgerError):
    """The ledger host failed a read, write or iteration.

    Args:
        message: Human-readable description naming the key involved.
        cause: Underlying exception raised by the host, if any.
    """

    status_code = 502
    result = "host_error"

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause
