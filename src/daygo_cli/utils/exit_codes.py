"""
Exit codes for daygo CLI.

Semantic exit codes so scripts wrapping `daygo` can tell what went wrong.
Code 3 is unused.
"""

SUCCESS = 0
ERROR_GENERAL = 1
ERROR_INVALID_ARGS = 2
ERROR_NETWORK = 4
ERROR_NOT_FOUND = 5
ERROR_PARTIAL_SYNC = 6
ERROR_STORAGE = 7

_EXIT_CODES: dict[int, tuple[str, str]] = {
    SUCCESS: ("SUCCESS", "Command executed successfully"),
    ERROR_GENERAL: ("ERROR_GENERAL", "A general error occurred"),
    ERROR_INVALID_ARGS: ("ERROR_INVALID_ARGS", "Invalid arguments, input or configuration"),
    ERROR_NETWORK: ("ERROR_NETWORK", "Sync peer unreachable, timed out or answered with an error"),
    ERROR_NOT_FOUND: ("ERROR_NOT_FOUND", "Task not found or task queue empty"),
    ERROR_PARTIAL_SYNC: ("ERROR_PARTIAL_SYNC", "Sync finished but some tasks could not be applied"),
    ERROR_STORAGE: ("ERROR_STORAGE", "Local database could not be opened"),
}


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    return _EXIT_CODES.get(code, (f"UNKNOWN({code})", ""))[0]


def get_exit_code_description(code: int) -> str:
    """Get a human-readable description of an exit code."""
    return _EXIT_CODES.get(code, ("", "Unknown exit code"))[1]
