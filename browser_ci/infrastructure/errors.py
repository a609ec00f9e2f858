"""
CI Errors - Exception Hierarchy
===============================

Infrastructure raises these; the CLI turns them into exit codes.
"""


class CIError(Exception):
    """Base exception for every CI failure."""
    pass


class StepFailedError(CIError):
    """Raised when an external tool exits non-zero (abort-on-error)."""

    def __init__(self, step_name: str, returncode: int, detail: str = ""):
        self.step_name = step_name
        self.returncode = returncode
        message = f"Step '{step_name}' failed with exit code {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TestsFailedError(CIError):
    """Raised when at least one browser did not pass the test suite."""
    __test__ = False

    def __init__(self, message: str, results=None):
        self.results = list(results or [])
        super().__init__(message)


class ServerError(CIError):
    """Raised when the static HTTPS server cannot start."""
    pass


class ReportError(CIError):
    """Raised when the screenshot report cannot be assembled."""
    pass
