"""Custom exception hierarchy for the educational content pipeline."""

from typing import Optional


class EduForgeError(Exception):
    """Base exception for all pipeline errors.

    ``transient`` marks failures a caller may retry later (backend warm-up,
    rate limits, timeouts) as opposed to permanent ones.
    """

    transient: bool = False

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- LLM Errors ----

class LLMError(EduForgeError):
    """Base exception for LLM API errors."""

    transient = True


class LLMRateLimitError(LLMError):
    """LLM API rate limit exceeded."""

    def __init__(self, message: str = "API rate limit exceeded", retry_after: Optional[float] = None):
        details = {}
        if retry_after is not None:
            details["retry_after"] = retry_after
        super().__init__(message, details)
        self.retry_after = retry_after


class LLMTimeoutError(LLMError):
    """LLM API request timed out."""


class GenerationExhaustedError(EduForgeError):
    """Section generation failed on every retry attempt."""

    def __init__(self, section_title: str, last_error: str, attempts: int):
        super().__init__(
            f'Failed to generate content for section "{section_title}" '
            f"after {attempts} attempts: {last_error}",
        )
        self.section_title = section_title
        self.last_error = last_error
        self.attempts = attempts


# ---- Progress Store Errors ----

class ProgressError(EduForgeError):
    """Base exception for progress store errors."""


class ProgressNotFoundError(ProgressError):
    """No progress record exists for the run."""

    def __init__(self, run_id: str):
        super().__init__(f"No progress found for workflow {run_id}", {"run_id": run_id})
        self.run_id = run_id


class ProgressAlreadyInitializedError(ProgressError):
    """A progress record already exists for the run."""

    def __init__(self, run_id: str):
        super().__init__(f"Progress already initialized for workflow {run_id}", {"run_id": run_id})
        self.run_id = run_id


class ProgressStorageError(ProgressError):
    """Underlying storage read/write failed."""

    transient = True


# ---- Workflow Errors ----

class WorkflowError(EduForgeError):
    """Base exception for workflow orchestration errors."""


class WorkflowCancelledError(WorkflowError):
    """The run was cancelled between section iterations."""

    def __init__(self, run_id: str):
        super().__init__("Workflow cancelled", {"run_id": run_id})
        self.run_id = run_id


# ---- Collaborator Errors ----

class RenderingError(EduForgeError):
    """Book export/rendering failed."""


class ResearchError(EduForgeError):
    """Research fetch (Wikipedia, web page) failed."""

    transient = True


# ---- Validation Errors ----

class ValidationError(EduForgeError):
    """Input validation failed."""


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""
