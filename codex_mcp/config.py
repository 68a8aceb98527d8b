"""Global configuration — loaded from environment variables."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CodexSettings(BaseSettings):
    binary: str = Field(
        default="codex",
        validation_alias=AliasChoices("CODEX_BIN", "binary"),
    )
    default_model: str = "o3"
    max_output_size: int = Field(
        default=10 * 1024 * 1024,
        ge=0,
        validation_alias=AliasChoices(
            "MAX_OUTPUT_SIZE", "CODEX_MAX_OUTPUT_SIZE", "max_output_size",
        ),
    )
    wait_timeout_ms: int = 300_000  # 5 minutes
    drain_timeout: float = 2.0  # seconds to wait for pipes to close after exit
    probe_timeout: float = 30.0
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="CODEX_", populate_by_name=True)


settings = CodexSettings()
