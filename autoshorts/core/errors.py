"""
Error taxonomy for the production pipeline.

Every stage validates its own entry contract and raises one of these
types. The orchestrator wraps whatever a stage raises in StageFailedError
and turns it into a structured failure result.
"""
from typing import Optional


class AutoShortsError(Exception):
    """Base class for all pipeline errors."""


class InvalidInputError(AutoShortsError, ValueError):
    """Required input missing or empty (empty lists, missing fields)."""


class PreconditionViolationError(AutoShortsError):
    """Stage invoked on data that does not meet its entry contract."""


class GenerationError(AutoShortsError):
    """Structured generation call returned nothing usable."""


class RenderTimeoutError(AutoShortsError):
    """Render job did not finish within the polling bound."""

    def __init__(self, message: str, attempts: int = 0, job_id: Optional[str] = None):
        super().__init__(message)
        self.attempts = attempts
        self.job_id = job_id


class ExternalProcessError(AutoShortsError):
    """External concatenation process failed."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class UploadFailedError(AutoShortsError):
    """Video platform rejected the publish request."""


class NoWinnerSelectedError(AutoShortsError):
    """Scored batch reached the orchestrator without a selected candidate."""


class StageFailedError(AutoShortsError):
    """A pipeline stage failed; carries the stage name and the cause."""

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage '{stage}' failed: {cause}")

    @property
    def error_type(self) -> str:
        return type(self.cause).__name__
