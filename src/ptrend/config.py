# Copyright (c) Syntropy Systems
"""Configuration management for ptrend."""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import cast

import yaml

from ptrend.errors import ConfigError
from ptrend.models.stats import LOAD_TEST_METRICS, WPT_KINDS

PROJECT_DIR_NAME = ".ptrend"
DB_FILE_NAME = "ptrend.db"
CONFIG_FILE_NAME = "config.yaml"


@dataclass
class PtrendConfig:
    """Configuration for ptrend."""

    # Single character separating columns in JMeter logs and CSV exports
    delimiter: str = ","

    # Whether JMeter logs start with a header row
    field_names: bool = False

    # Labels matching this regex are dropped while parsing
    ignore_pattern: str = ""

    # Default metric for `ptrend export`
    metric: str = "average"

    # WebPageTest summary view used for reports (avg, std, med)
    wpt_kind: str = "med"

    def validate(self) -> None:
        """Raise ConfigError if any value is unusable."""
        validate_delimiter(self.delimiter)
        validate_ignore_pattern(self.ignore_pattern)
        if self.metric not in LOAD_TEST_METRICS:
            msg = f"Metric is not one of the following: {list(LOAD_TEST_METRICS)}"
            raise ConfigError(msg)
        if self.wpt_kind not in WPT_KINDS:
            msg = f"WebPageTest kind is not one of the following: {list(WPT_KINDS)}"
            raise ConfigError(msg)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def validate_delimiter(delimiter: str) -> str:
    if len(delimiter) != 1:
        msg = "Delimiter should only be one character long"
        raise ConfigError(msg)
    return delimiter


def validate_ignore_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile the label ignore pattern; an empty pattern ignores nothing."""
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        msg = f"Provided ignore pattern is invalid: {e}"
        raise ConfigError(msg) from e


def find_ptrend_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .ptrend directory by walking up from start_path.

    Returns None if no .ptrend directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        ptrend_dir = current / PROJECT_DIR_NAME
        if ptrend_dir.is_dir():
            return ptrend_dir
        current = current.parent

    # Check root
    ptrend_dir = current / PROJECT_DIR_NAME
    if ptrend_dir.is_dir():
        return ptrend_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global ptrend config directory (~/.ptrend)."""
    return Path.home() / PROJECT_DIR_NAME


def load_config(ptrend_dir: Path | None = None) -> PtrendConfig:
    """Load configuration from .ptrend/config.yaml or defaults.

    Looks for config in:
    1. Provided ptrend_dir
    2. Nearest .ptrend directory walking up
    3. ~/.ptrend/config.yaml
    4. Defaults
    """
    config = PtrendConfig()

    config_path = None

    if ptrend_dir is not None:
        config_path = ptrend_dir / CONFIG_FILE_NAME
    else:
        found_dir = find_ptrend_dir()
        if found_dir is not None:
            config_path = found_dir / CONFIG_FILE_NAME
        else:
            global_config = get_global_config_dir() / CONFIG_FILE_NAME
            if global_config.exists():
                config_path = global_config

    if config_path is not None and config_path.exists():
        with config_path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})

        delimiter = data.get("delimiter")
        if isinstance(delimiter, str):
            config.delimiter = delimiter
        field_names = data.get("field_names")
        if isinstance(field_names, bool):
            config.field_names = field_names
        ignore_pattern = data.get("ignore_pattern")
        if isinstance(ignore_pattern, str):
            config.ignore_pattern = ignore_pattern
        metric = data.get("metric")
        if isinstance(metric, str):
            config.metric = metric
        wpt_kind = data.get("wpt_kind")
        if isinstance(wpt_kind, str):
            config.wpt_kind = wpt_kind

        config.validate()

    return config


def require_ptrend_dir() -> Path:
    """Get ptrend directory or raise an error if not found."""
    ptrend_dir = find_ptrend_dir()
    if ptrend_dir is None:
        msg = "No .ptrend directory found. Run 'ptrend init' first."
        raise RuntimeError(
            msg
        )
    return ptrend_dir


def get_db_path(ptrend_dir: Path | None = None) -> Path:
    """Get the path to the SQLite database."""
    if ptrend_dir is None:
        ptrend_dir = require_ptrend_dir()

    return ptrend_dir / DB_FILE_NAME


def resolve_db_path(db: Path | None) -> Path:
    """Use an explicit --db path if given, otherwise the project database."""
    if db is not None:
        if db.is_dir():
            msg = f"Database path is a directory: {db}"
            raise RuntimeError(msg)
        return db
    return get_db_path()
