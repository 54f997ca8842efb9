"""
Replay configuration, read from LEDGER_REPLAY_* environment variables.
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReplaySettings(BaseSettings):
    """Runtime knobs for the batch replayer"""

    model_config = SettingsConfigDict(env_prefix="LEDGER_REPLAY_")

    # Number of shard workers; 1 means a single consumer thread
    workers: int = 1
    # Per-shard queue bound, 0 for unbounded
    queue_size: int = 0

    log_level: str = "WARNING"
    log_format: str = "%(levelname)s: %(message)s"

    @field_validator("workers")
    @classmethod
    def _check_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("workers must be at least 1")
        return value

    @field_validator("queue_size")
    @classmethod
    def _check_queue_size(cls, value: int) -> int:
        if value < 0:
            raise ValueError("queue_size must not be negative")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level
