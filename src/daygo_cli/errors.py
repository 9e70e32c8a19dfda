"""Exception hierarchy for daygo CLI.

Every error carries the exit code the CLI reports when it escapes a command.
Only `StorageInitError` is fatal for an interactive session; everything else
is shown as an alert and the session keeps running.
"""

from __future__ import annotations

from collections.abc import Sequence

from daygo_cli.utils.exit_codes import (
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_NETWORK,
    ERROR_NOT_FOUND,
    ERROR_PARTIAL_SYNC,
    ERROR_STORAGE,
)


class DaygoError(Exception):
    """Base class for application errors."""

    exit_code: int = ERROR_GENERAL

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class NotFoundError(DaygoError):
    """A task or sync session does not exist."""

    exit_code = ERROR_NOT_FOUND


class QueueEmptyError(NotFoundError):
    """No queued task matches the active filter."""

    def __init__(self, message: str = "task queue is empty"):
        super().__init__(message)


class ValidationError(DaygoError):
    """Caller supplied invalid input or the operation is illegal in the current state."""

    exit_code = ERROR_INVALID_ARGS


class TransportError(DaygoError):
    """The sync peer could not be reached or answered with an error."""

    exit_code = ERROR_NETWORK

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class OperationTimeout(DaygoError):
    """A storage or network call exceeded the command timeout."""

    exit_code = ERROR_NETWORK

    def __init__(self, operation: str, timeout: float):
        super().__init__(f"{operation} timed out after {timeout:g}s")
        self.operation = operation
        self.timeout = timeout


class PartialMergeError(DaygoError):
    """Some pulled tasks could not be applied locally."""

    exit_code = ERROR_PARTIAL_SYNC

    def __init__(self, errors: Sequence[BaseException]):
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))


class StorageInitError(DaygoError):
    """The local database could not be opened or migrated."""

    exit_code = ERROR_STORAGE
