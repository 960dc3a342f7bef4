"""Configuration package: settings, logging, and exceptions."""

from config.exceptions import (
    EduForgeError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
    GenerationExhaustedError,
    ProgressError,
    ProgressNotFoundError,
    ProgressAlreadyInitializedError,
    ProgressStorageError,
    WorkflowError,
    WorkflowCancelledError,
    RenderingError,
    ResearchError,
    ValidationError,
    InvalidConfigError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "EduForgeError",
    "LLMError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "GenerationExhaustedError",
    "ProgressError",
    "ProgressNotFoundError",
    "ProgressAlreadyInitializedError",
    "ProgressStorageError",
    "WorkflowError",
    "WorkflowCancelledError",
    "RenderingError",
    "ResearchError",
    "ValidationError",
    "InvalidConfigError",
]
