"""Error handling for venv harness."""
import logging
from typing import Any, Dict, Optional, Sequence

from mcp.types import (
    ErrorData,
    INVALID_REQUEST,
    INVALID_PARAMS,
    INTERNAL_ERROR,
)


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log an error with context."""
    logger = logger or logging.getLogger("venv_harness.errors")

    error_info = {
        "error_type": error.__class__.__name__,
        "error_message": str(error)
    }
    if context:
        error_info["context"] = context
    if isinstance(error, VenvHarnessError):
        error_info["code"] = error.code
        error_info["details"] = error.details

    logger.error("Venv harness error occurred", extra={"data": error_info})


class VenvHarnessError(Exception):
    """Base error class for venv harness."""
    def __init__(
        self,
        message: str,
        code: int = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_error_data(self) -> ErrorData:
        """Convert to ErrorData format."""
        return ErrorData(
            code=self.code,
            message=str(self),
            data=self.details
        )


class ConfigError(VenvHarnessError):
    """Invalid configuration value."""
    def __init__(self, key: str, value: str):
        super().__init__(
            f"Invalid value for {key}: {value!r}",
            code=INVALID_PARAMS,
            details={"key": key, "value": value}
        )


class StepFailedError(VenvHarnessError):
    """An external tool exited non-zero or could not be launched."""
    step = "command"

    def __init__(
        self,
        cmd: Sequence[str],
        returncode: Optional[int],
        stdout: str = "",
        stderr: str = "",
        error: Optional[str] = None,
    ):
        reason = error if returncode is None else f"exit code {returncode}"
        super().__init__(
            f"{self.step} failed ({reason}) while running: {' '.join(cmd)}\n"
            f"stdout: {stdout}\n"
            f"stderr: {stderr}",
            code=INTERNAL_ERROR,
            details={
                "step": self.step,
                "cmd": list(cmd),
                "returncode": returncode,
                "stdout": stdout,
                "stderr": stderr,
            }
        )
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @classmethod
    def from_result(cls, result) -> "StepFailedError":
        return cls(result.cmd, result.returncode, result.stdout, result.stderr, result.error)


class VenvCreateError(StepFailedError):
    """Environment creation tool failed."""
    step = "create"


class InstallError(StepFailedError):
    """Package install failed."""
    step = "install"


class BuildError(StepFailedError):
    """Package build/develop failed."""
    step = "build"


class CommandFailedError(StepFailedError):
    """Spawned command failed."""
    step = "command"


class InvalidVenvError(VenvHarnessError):
    """Path exists but is not a virtual environment."""
    def __init__(self, path: str):
        super().__init__(
            f"{path} exists but is not a virtual environment",
            code=INVALID_PARAMS,
            details={"path": path}
        )


class BinNotFoundError(VenvHarnessError):
    """Binary not found error."""
    def __init__(self, binary_name: str, search_path: str):
        super().__init__(
            f"Binary {binary_name} not found in {search_path}",
            code=INVALID_REQUEST,
            details={"binary_name": binary_name, "search_path": search_path}
        )


class UnknownEnvironmentError(VenvHarnessError):
    """Error for invalid/missing environment."""
    def __init__(self, env_id: str):
        super().__init__(
            f"Unknown environment: {env_id}",
            code=INVALID_PARAMS,
            details={"env_id": env_id}
        )
