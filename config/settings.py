"""Configuration settings loaded from .env file."""

from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

MIN_TARGET_WORD_COUNT = 1000
MAX_TARGET_WORD_COUNT = 100000

_EXPORT_FORMATS = {"html", "pdf"}


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Authentication for the Agent SDK is handled by the Claude Code CLI,
    so no API key lives here.
    """

    # LLM models, one per agent role
    llm_model_outline: str = "claude-opus-4-6"    # OutlineAgent
    llm_model_writing: str = "claude-sonnet-4-6"  # WriterAgent
    llm_model_reviewing: str = "claude-opus-4-6"  # ReviewerAgent
    llm_call_timeout: float = 600.0               # Seconds per agent call, 0 disables

    # Run defaults (used by scheduled runs and when a caller omits a field)
    default_topic: str = "Advanced JavaScript Programming"
    default_audience: str = "Intermediate developers"
    default_target_word_count: int = 60000

    # Scheduled trigger (consumed by an external cron)
    schedule_cron: str = "0 9 * * *"
    schedule_timezone: str = "UTC"

    # Section generation
    retry_attempts: int = 3
    backoff_base_ms: int = 1000
    backoff_max_ms: int = 30000

    # Review gate
    approval_threshold: float = 7.0
    default_quality_score: float = 7.5
    review_sample_chars: int = 3000

    # Research
    research_enabled: bool = True
    research_timeout: float = 15.0
    research_urls: list[str] = []                 # Extra pages whose text joins the brief

    # Storage
    progress_db_path: Path = Path("./data/progress.db")
    progress_overwrite_existing: bool = False

    # Export
    output_dir: Path = Path("./data/generated_books")
    export_formats: list[str] = ["html", "pdf"]
    book_author: str = "AI Educational Content System"
    book_subtitle: str = "A Comprehensive Educational Resource"

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 5000

    # Logging
    log_dir: Path = Path("./data/logs")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retry_attempts must be >= 1")
        return v

    @field_validator("approval_threshold", "default_quality_score")
    @classmethod
    def validate_score_range(cls, v: float) -> float:
        if not 0.0 <= v <= 10.0:
            raise ValueError("Quality score settings must be within [0, 10]")
        return v

    @field_validator("default_target_word_count")
    @classmethod
    def validate_word_count(cls, v: int) -> int:
        if not MIN_TARGET_WORD_COUNT <= v <= MAX_TARGET_WORD_COUNT:
            raise ValueError(
                f"default_target_word_count must be within "
                f"[{MIN_TARGET_WORD_COUNT}, {MAX_TARGET_WORD_COUNT}]"
            )
        return v

    @field_validator("export_formats")
    @classmethod
    def validate_export_formats(cls, v: list[str]) -> list[str]:
        formats = [f.lower() for f in v]
        unknown = set(formats) - _EXPORT_FORMATS
        if unknown:
            raise ValueError(f"Unsupported export format(s): {sorted(unknown)}")
        if not formats:
            raise ValueError("export_formats must not be empty")
        return formats

    @field_validator("progress_db_path", "log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def validate_backoff_range(self) -> "Settings":
        if self.backoff_base_ms > self.backoff_max_ms:
            raise ValueError(
                f"backoff_base_ms ({self.backoff_base_ms}) must not exceed "
                f"backoff_max_ms ({self.backoff_max_ms})"
            )
        return self


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
