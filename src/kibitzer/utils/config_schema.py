"""Pydantic models describing the project's configuration.

These models mirror the structure of ``configs/config.yaml`` and provide
type validation as well as sensible defaults for optional fields.

The top-level :class:`ConfigModel` requires all major sections (``reasoning``,
``stockfish`` ...), ensuring that a missing section results in a clear
validation error.  Individual fields inside those sections carry defaults so
that minor omissions fall back to reasonable values.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_KEY_ENV = [
    "GEMINI_API_KEY",
    "GEMINI_API_KEY_2",
    "GEMINI_API_KEY_3",
    "GEMINI_API_KEY_4",
    "GEMINI_API_KEY_5",
]


class ReasoningConfig(BaseModel):
    model: str = Field("gemini-2.0-flash")
    api_version: str | None = None
    temperature: float = 0.4
    max_output_tokens: int = 512
    timeout: float = 30.0
    min_request_interval: float = Field(4.0, ge=0.0)
    api_key_env: list[str] = Field(default_factory=lambda: list(DEFAULT_KEY_ENV))
    language: str = "English"


class RetryConfig(BaseModel):
    max_retries: int = Field(3, ge=0)
    base_delay: float = Field(1.0, ge=0.0)
    multiplier: float = Field(2.0, ge=1.0)


class StockfishConfig(BaseModel):
    path: str = "stockfish"
    depth: int = Field(10, ge=1)
    search_timeout: float | None = None


class OrchestratorConfig(BaseModel):
    book_delay: float = Field(0.8, ge=0.0)
    turn_timeout: float | None = None
    trip_on_malformed: bool = True


class BookConfig(BaseModel):
    extra_entries: dict[str, str] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    quiet_loggers: list[str] = Field(default_factory=lambda: ["httpx", "httpcore"])


class ConfigModel(BaseModel):
    """Complete configuration model."""

    model_config = ConfigDict(extra="forbid")

    reasoning: ReasoningConfig
    retry: RetryConfig
    stockfish: StockfishConfig
    orchestrator: OrchestratorConfig
    book: BookConfig
    logging: LoggingConfig
