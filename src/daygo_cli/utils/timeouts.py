"""Deadline helper for storage and network calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from daygo_cli.errors import OperationTimeout

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], timeout: float | None, operation: str) -> T:
    """Await *awaitable*, raising `OperationTimeout` after *timeout* seconds.

    A timeout of None or 0 waits indefinitely.
    """
    if not timeout:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except TimeoutError as e:
        raise OperationTimeout(operation, timeout) from e
