"""Pydantic models for toolloop configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProviderConfig(BaseModel):
    """Configuration for a single LLM provider."""

    enabled: bool = True
    api_key: str | None = None
    api_key_env: str | None = None
    base_url: str | None = None
    timeout_seconds: float = Field(default=300.0, gt=0)


class GeneralConfig(BaseModel):
    """Agentic loop settings."""

    model: str = "openai:gpt-4o"
    max_iterations: int = Field(default=10, ge=1)
    max_output_tokens: int = Field(default=10_000, ge=1)
    # "auto", "none", "required", or the name of a tool to pin
    tool_choice: str = Field(default="auto", min_length=1)


class RetryConfigModel(BaseModel):
    """Retry policy for completion calls (delays in seconds)."""

    max_attempts: int = Field(default=3, ge=1)
    token_limit_base_delay: float = 1.0
    token_limit_max_delay: float = 10.0
    rate_limit_base_delay: float = 2.0
    rate_limit_max_delay: float = 15.0


class DebugConfig(BaseModel):
    """Request/response capture for debugging."""

    enabled: bool = False
    capture_dir: str = ""
    prefix: str = "completion"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""


class ToolloopConfig(BaseModel):
    """Top-level configuration for toolloop."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    providers: dict[str, ProviderConfig] = Field(
        default_factory=lambda: {
            "openai": ProviderConfig(api_key_env="OPENAI_API_KEY"),
            "anthropic": ProviderConfig(api_key_env="ANTHROPIC_API_KEY"),
        }
    )
    retry: RetryConfigModel = Field(default_factory=RetryConfigModel)
    debug: DebugConfig = Field(default_factory=DebugConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
