"""Decorators for command functions."""

import asyncio
import functools
import inspect
import logging
import time
from collections.abc import Callable

import typer

from daygo_cli.errors import DaygoError
from daygo_cli.utils.exit_codes import ERROR_GENERAL, get_exit_code_name
from daygo_cli.utils.ui.formatters import format_error

logger = logging.getLogger("daygo_cli.commands")


def command_wrapper(func: Callable) -> Callable:
    """Run a sync or async command, logging it and mapping errors to exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        cmd = func.__name__
        start = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            if inspect.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)

            logger.info("command completed: %s (%.3fs)", cmd, time.monotonic() - start)
            return result

        except DaygoError as e:
            logger.error(
                "command failed: %s (%.3fs) [%s] - %s",
                cmd,
                time.monotonic() - start,
                get_exit_code_name(e.exit_code),
                e,
            )
            format_error(str(e))
            raise typer.Exit(code=e.exit_code) from e

        except typer.Exit:
            # --help, explicit Exit(0) and friends
            raise

        except Exception as e:
            logger.exception("command failed: %s (%.3fs)", cmd, time.monotonic() - start)
            format_error(f"An unexpected error occurred: {e}")
            raise typer.Exit(code=ERROR_GENERAL) from e

    return wrapper
