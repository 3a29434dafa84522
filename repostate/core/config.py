"""Unified configuration via pydantic-settings."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RepoStateConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REPOSTATE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Git process
    git_binary: str = "git"
    command_timeout_seconds: float = 30.0
    max_output_bytes: int = 10_485_760

    # Remote listing
    remote_concurrency: int = 4

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None
    log_max_bytes: int = 10_485_760
    log_backup_count: int = 5

    @field_validator("command_timeout_seconds")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("command_timeout_seconds must be positive")
        return v

    @field_validator("max_output_bytes", "remote_concurrency")
    @classmethod
    def at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("log_dir")
    @classmethod
    def expand_log_dir(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None
