"""Tests for the error hierarchy and exit codes."""

from daygo_cli.errors import (
    DaygoError,
    NotFoundError,
    OperationTimeout,
    PartialMergeError,
    QueueEmptyError,
    StorageInitError,
    TransportError,
    ValidationError,
)
from daygo_cli.utils import exit_codes


def test_exit_codes_per_error():
    assert DaygoError("x").exit_code == exit_codes.ERROR_GENERAL
    assert NotFoundError("x").exit_code == exit_codes.ERROR_NOT_FOUND
    assert QueueEmptyError().exit_code == exit_codes.ERROR_NOT_FOUND
    assert ValidationError("x").exit_code == exit_codes.ERROR_INVALID_ARGS
    assert TransportError("x").exit_code == exit_codes.ERROR_NETWORK
    assert StorageInitError("x").exit_code == exit_codes.ERROR_STORAGE
    assert DaygoError("x", exit_codes.ERROR_PARTIAL_SYNC).exit_code == exit_codes.ERROR_PARTIAL_SYNC


def test_queue_empty_is_not_found():
    error = QueueEmptyError()
    assert isinstance(error, NotFoundError)
    assert str(error) == "task queue is empty"


def test_partial_merge_error_joins_messages():
    error = PartialMergeError([DaygoError("first"), ValueError("second")])
    assert str(error) == "first\nsecond"
    assert len(error.errors) == 2
    assert error.exit_code == exit_codes.ERROR_PARTIAL_SYNC


def test_operation_timeout_message():
    error = OperationTimeout("saving tasks", 3.0)
    assert str(error) == "saving tasks timed out after 3s"
    assert isinstance(error, DaygoError)


def test_exit_code_names():
    assert exit_codes.get_exit_code_name(exit_codes.ERROR_STORAGE) == "ERROR_STORAGE"
    assert exit_codes.get_exit_code_description(exit_codes.SUCCESS)
