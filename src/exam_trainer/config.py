"""Configuration: Exam rules, timer thresholds and history settings from YAML."""

import logging
from pathlib import Path
from typing import Optional

import yaml

from exam_trainer.countdown import (
    DEFAULT_CRITICAL_THRESHOLD,
    DEFAULT_TIME_LIMIT,
    DEFAULT_WARNING_THRESHOLD,
)
from exam_trainer.errors import ConfigurationError
from exam_trainer.history import DEFAULT_STORAGE_KEY, MAX_ENTRIES

logger = logging.getLogger(__name__)

DEFAULT_PASS_THRESHOLD = 18


class ExamConfig:
    """Settings for one exam trainer instance."""

    def __init__(self, pass_threshold: int = DEFAULT_PASS_THRESHOLD,
                 time_limit: float = DEFAULT_TIME_LIMIT,
                 warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
                 critical_threshold: float = DEFAULT_CRITICAL_THRESHOLD,
                 tick_interval: float = 1.0,
                 history_db_path: str = "exam_history.db",
                 history_key: str = DEFAULT_STORAGE_KEY,
                 history_max_entries: int = MAX_ENTRIES,
                 seed: Optional[int] = None):
        self.pass_threshold = pass_threshold
        self.time_limit = time_limit
        self.warning_threshold = warning_threshold
        self.critical_threshold = critical_threshold
        self.tick_interval = tick_interval
        self.history_db_path = history_db_path
        self.history_key = history_key
        self.history_max_entries = history_max_entries
        self.seed = seed

    @classmethod
    def from_dict(cls, config: dict) -> "ExamConfig":
        exam_cfg = config.get("exam", {}) or {}
        timer_cfg = config.get("timer", {}) or {}
        history_cfg = config.get("history", {}) or {}

        time_limit = timer_cfg.get("time_limit")
        if time_limit is None and "time_limit_minutes" in timer_cfg:
            time_limit = timer_cfg["time_limit_minutes"] * 60

        cfg = cls(
            pass_threshold=exam_cfg.get("pass_threshold", DEFAULT_PASS_THRESHOLD),
            time_limit=time_limit if time_limit is not None else DEFAULT_TIME_LIMIT,
            warning_threshold=timer_cfg.get("warning_threshold", DEFAULT_WARNING_THRESHOLD),
            critical_threshold=timer_cfg.get("critical_threshold", DEFAULT_CRITICAL_THRESHOLD),
            tick_interval=timer_cfg.get("tick_interval", 1.0),
            history_db_path=history_cfg.get("db_path", "exam_history.db"),
            history_key=history_cfg.get("storage_key", DEFAULT_STORAGE_KEY),
            history_max_entries=history_cfg.get("max_entries", MAX_ENTRIES),
            seed=exam_cfg.get("seed"),
        )
        cfg.validate()
        return cfg

    def validate(self):
        if self.pass_threshold < 0:
            raise ConfigurationError("exam.pass_threshold must not be negative")
        if self.time_limit <= 0:
            raise ConfigurationError("timer.time_limit must be positive")
        if self.tick_interval <= 0:
            raise ConfigurationError("timer.tick_interval must be positive")
        if self.critical_threshold > self.warning_threshold:
            raise ConfigurationError("timer.critical_threshold must not exceed timer.warning_threshold")
        if self.history_max_entries < 1:
            raise ConfigurationError("history.max_entries must be at least 1")


def load_config(path: str) -> ExamConfig:
    """Load settings from a YAML file; a missing file yields the defaults."""
    config = {}
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}
        logger.debug(f"Loaded config from {config_path}")
    else:
        logger.info(f"Config file {config_path} not found, using defaults.")
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return ExamConfig.from_dict(config)
