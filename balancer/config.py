"""Simulator configuration using Pydantic Settings (v2).

Values come from real environment variables (prefix ``BALANCER_``) or a
``.env`` file at the repository root, falling back to the defaults below.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed simulator configuration.

    Attributes
    ----------
    server_count : int
        Number of servers in the pool; maps from `BALANCER_SERVER_COUNT`.
    server_capacity : int
        Capacity shared by every server; maps from `BALANCER_SERVER_CAPACITY`.
    min_task_weight, max_task_weight : int
        Inclusive range for generated task weights.
    batch_size : int
        Tasks enqueued by a single batch add.
    seed : int | None
        Seed for the task weight generator; ``None`` draws from the OS.
    log_level : LogLevelName
        Level for loggers returned by `get_logger`.
    """

    server_count: int = Field(default=3, gt=0)
    server_capacity: int = Field(default=100, gt=0)
    min_task_weight: int = Field(default=10, gt=0)
    max_task_weight: int = Field(default=39, gt=0)
    batch_size: int = Field(default=5, gt=0)
    seed: int | None = None
    log_level: LogLevelName = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="BALANCER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_weight_range(self) -> "Settings":
        if self.max_task_weight < self.min_task_weight:
            raise ValueError("max_task_weight must be >= min_task_weight")
        return self

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.WARNING)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests can force a rebuild via `load_settings.cache_clear()` after
    mutating `os.environ`.
    """
    return Settings()


def get_logger(name: str = "balancer") -> logging.Logger:
    """Return a process-global logger configured to the settings' log level."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
