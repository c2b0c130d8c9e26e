"""Runtime settings for gitp.

Resolved once at startup from the environment (and CLI overrides) and
passed down explicitly; nothing reads the environment after that.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

import click

from gitp.exceptions import GitpError

APP_NAME = "gitp"
STORE_FILE_NAME = "config.toml"

ENV_CONFIG_DIR = "GITP_CONFIG_DIR"
ENV_SSH_CONFIG = "GITP_SSH_CONFIG"
ENV_LOG_LEVEL = "GITP_LOG_LEVEL"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(GitpError):
    """Raised when runtime settings are invalid."""


def default_config_dir() -> Path:
    return Path(click.get_app_dir(APP_NAME))


@dataclass(frozen=True)
class Settings:
    store_path: Path = field(default_factory=lambda: default_config_dir() / STORE_FILE_NAME)
    ssh_config_path: Path = field(default_factory=lambda: Path.home() / ".ssh" / "config")
    log_level: str = "WARNING"

    def with_overrides(
        self,
        *,
        store_path: Path | None = None,
        ssh_config_path: Path | None = None,
        verbose: bool = False,
    ) -> Settings:
        return replace(
            self,
            store_path=store_path.expanduser() if store_path else self.store_path,
            ssh_config_path=(
                ssh_config_path.expanduser() if ssh_config_path else self.ssh_config_path
            ),
            log_level="DEBUG" if verbose else self.log_level,
        )


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from ``GITP_*`` environment variables."""
    env = os.environ if environ is None else environ
    defaults = Settings()

    config_dir = env.get(ENV_CONFIG_DIR, "").strip()
    ssh_config = env.get(ENV_SSH_CONFIG, "").strip()
    level = env.get(ENV_LOG_LEVEL, "").strip().upper() or defaults.log_level
    if level not in _LOG_LEVELS:
        raise ConfigError(
            f"Invalid {ENV_LOG_LEVEL} {level!r}; expected one of "
            f"{', '.join(sorted(_LOG_LEVELS))}."
        )

    return Settings(
        store_path=(
            Path(config_dir).expanduser() / STORE_FILE_NAME
            if config_dir
            else defaults.store_path
        ),
        ssh_config_path=Path(ssh_config).expanduser() if ssh_config else defaults.ssh_config_path,
        log_level=level,
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(levelname)s: %(message)s",
        force=True,
    )
