"""Bootstrap: logging setup and client wiring."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import structlog
from pydantic import ValidationError

from repostate.core.config import RepoStateConfig
from repostate.exceptions import ConfigError
from repostate.git.client import GitClient
from repostate.git.runner import GitRunner

logger = structlog.get_logger()


def _configure_logging(config: RepoStateConfig, *, log_dir: Path | None = None) -> None:
    """Set up structlog with console output and optional rotating JSON file handler."""
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    root_logger = logging.getLogger()
    root_logger.setLevel(config.log_level)
    root_logger.handlers.clear()

    # Console goes to stderr so stdout stays clean for JSON output
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(),
        )
    )
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "repostate.log",
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
        )
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
            )
        )
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_client(config: RepoStateConfig | None = None) -> GitClient:
    """Wire a GitClient from configuration, configuring logging on the way."""
    if config is None:
        try:
            config = RepoStateConfig()
        except ValidationError as e:
            raise ConfigError(str(e)) from e

    _configure_logging(config, log_dir=config.log_dir)

    runner = GitRunner(
        binary=config.git_binary,
        timeout=config.command_timeout_seconds,
        max_output_bytes=config.max_output_bytes,
    )
    logger.debug(
        "client_built",
        git_binary=config.git_binary,
        timeout=config.command_timeout_seconds,
    )
    return GitClient.create(runner, remote_concurrency=config.remote_concurrency)
