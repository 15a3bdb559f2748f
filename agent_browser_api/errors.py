"""
Exception hierarchy.

Every error carries the HTTP status it maps to, chosen where it is raised, so
the API layer never has to guess from message text.
"""

from typing import Sequence


class BrowserApiError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    title: str = "Internal Server Error"


class ValidationError(BrowserApiError):
    """Raised when a request is missing a field or carries a bad value."""

    status_code = 400
    title = "Bad Request"


class NotFoundError(BrowserApiError):
    """Raised when the browser tool did not produce an expected artifact."""

    status_code = 404
    title = "Not Found"


class ExecutionError(BrowserApiError):
    """
    Raised when the agent-browser executable fails.

    This includes:
    - non-zero exit status
    - timeouts (the process is killed)
    - output beyond the configured cap (the process is killed)
    - the executable could not be started

    Attributes:
        args_: The arguments passed to the executable (without the executable)
        returncode: Exit status, or None if the process never exited on its own
        stderr: Captured standard error, possibly empty
        reason: Short description of what went wrong
    """

    def __init__(
        self,
        args: Sequence[str],
        reason: str,
        *,
        returncode: int | None = None,
        stderr: str = "",
    ):
        self.args_ = list(args)
        self.reason = reason
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(self._format())

    def _format(self) -> str:
        message = f"agent-browser {' '.join(self.args_)} failed: {self.reason}"
        if self.stderr.strip():
            message += f" ({self.stderr.strip()})"
        return message
