"""
Error handling.

Custom exception classes for consistent error handling across the
orchestration engine.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for all orchestration errors."""

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        code: Optional[str] = None
    ):
        """
        Initialize pipeline error.

        Args:
            message: Error message
            job_id: Optional remote job ID associated with the error
            code: Optional error code for categorization
        """
        self.message = message
        self.job_id = job_id
        self.code = code
        super().__init__(self.message)


class ConfigError(PipelineError):
    """Configuration errors (missing env vars, invalid settings)."""
    pass


class GenerationError(PipelineError):
    """Remote generation failures (images, video)."""
    pass


class CompositionError(PipelineError):
    """Video combination failures."""
    pass


class InsufficientCreditsError(PipelineError):
    """Estimated charge exceeds the user's credit balance."""

    def __init__(
        self,
        message: str,
        required: int = 0,
        available: int = 0,
        job_id: Optional[str] = None,
        code: Optional[str] = "INSUFFICIENT_CREDITS"
    ):
        """
        Initialize insufficient credits error.

        Args:
            message: Error message
            required: Credits the operation needs
            available: Credits the user currently holds
            job_id: Optional job ID associated with the error
            code: Optional error code for categorization
        """
        self.required = required
        self.available = available
        super().__init__(message, job_id, code)


class GenerationInProgressError(PipelineError):
    """A generation of the same kind is already running."""
    pass


class RetryableError(PipelineError):
    """Error that can be retried."""
    pass


class ValidationError(PipelineError):
    """Input validation errors."""
    pass


__all__ = [
    "PipelineError",
    "ConfigError",
    "GenerationError",
    "CompositionError",
    "InsufficientCreditsError",
    "GenerationInProgressError",
    "RetryableError",
    "ValidationError",
]
