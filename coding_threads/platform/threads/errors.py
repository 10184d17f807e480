"""Exception hierarchy for thread management."""

from pathlib import Path


class ThreadError(Exception):
    """Base exception for thread management errors."""


class ThreadNotFoundError(ThreadError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Thread '{name}' not found")


class ThreadNameError(ThreadError, ValueError):
    """Raised when a requested thread name is malformed."""


class WorkingDirectoryError(ThreadError):
    """Raised when a thread's working directory cannot be used.

    Thread initialization fails fast: no process is left running.
    """

    def __init__(self, path: Path, reason: str = "does not exist") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Working directory '{path}' {reason}")


class ThreadUnavailableError(ThreadError):
    """Raised when a thread process does not answer a query in time."""

    def __init__(self, name: str, timeout: float) -> None:
        self.name = name
        self.timeout = timeout
        super().__init__(f"Thread '{name}' did not answer within {timeout}s")
