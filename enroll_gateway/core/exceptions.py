"""
Custom application exceptions.
"""


class GatewayError(Exception):
    """Base exception for gateway errors."""
    pass


class ValidationError(GatewayError):
    """Required request field missing or empty."""
    pass


class NotFoundError(GatewayError):
    """Requested resource does not exist on disk."""
    pass


class ExternalToolError(GatewayError):
    """External CLI call failed."""

    def __init__(self, message: str, stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class ToolExecutionError(ExternalToolError):
    """External CLI exited with a non-zero status or could not be started."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message, stdout=stdout, stderr=stderr)
        self.exit_code = exit_code


class ToolTimeoutError(ExternalToolError):
    """External CLI exceeded its wall-clock budget and was killed."""

    def __init__(self, message: str, timeout: float, stdout: str = "", stderr: str = ""):
        super().__init__(message, stdout=stdout, stderr=stderr)
        self.timeout = timeout


class ToolOutputLimitError(ExternalToolError):
    """External CLI produced more output than allowed and was killed."""

    def __init__(self, message: str, limit: int, stdout: str = "", stderr: str = ""):
        super().__init__(message, stdout=stdout, stderr=stderr)
        self.limit = limit
