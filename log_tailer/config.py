"""Configuration: defaults <- YAML file <- environment variables <- CLI args."""

import os
import logging
from dataclasses import dataclass, fields

import yaml

logger = logging.getLogger(__name__)

SINKS = ("console", "batch")


@dataclass(frozen=True)
class Config:
    log_dir: str = "./logs"
    file_pattern: str = "*.log"
    poll_interval: float = 10.0
    max_workers: int = 4
    sink: str = "console"
    output_dir: str = "collected_logs/"
    batch_size: int = 50
    log_level: str = "INFO"

    def __post_init__(self):
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.sink not in SINKS:
            raise ValueError(f"sink must be one of {SINKS}, got {self.sink!r}")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"unknown log_level: {self.log_level!r}")


_ENV_VARS = {
    "log_dir": "LOG_DIR",
    "file_pattern": "FILE_PATTERN",
    "poll_interval": "POLL_INTERVAL",
    "max_workers": "MAX_WORKERS",
    "sink": "SINK",
    "output_dir": "OUTPUT_DIR",
    "batch_size": "BATCH_SIZE",
    "log_level": "LOG_LEVEL",
}

_CASTS = {
    "poll_interval": float,
    "max_workers": int,
    "batch_size": int,
}


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
        return data
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}


def load_config(cli_args=None, yaml_data: dict | None = None, environ=None) -> Config:
    """Build Config from CLI args, env vars, and parsed YAML data.

    ``cli_args`` is an argparse namespace; attributes left at ``None`` do not
    override lower layers.
    """
    if environ is None:
        environ = os.environ
    names = {f.name for f in fields(Config)}
    kwargs: dict = {}

    for key, value in (yaml_data or {}).items():
        if key in names:
            kwargs[key] = value
        else:
            logger.warning("Ignoring unknown config key: %s", key)

    for key, env_name in _ENV_VARS.items():
        if env_name in environ:
            kwargs[key] = environ[env_name]

    if cli_args is not None:
        for key in names:
            value = getattr(cli_args, key, None)
            if value is not None:
                kwargs[key] = value

    for key, cast in _CASTS.items():
        if key in kwargs:
            try:
                kwargs[key] = cast(kwargs[key])
            except (TypeError, ValueError) as e:
                raise ValueError(f"invalid {key}: {kwargs[key]!r}") from e
    if "log_level" in kwargs:
        kwargs["log_level"] = str(kwargs["log_level"]).upper()

    return Config(**kwargs)
