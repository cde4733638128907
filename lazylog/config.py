"""Configuration: frozen dataclass loaded from YAML and environment variables."""

import logging
import os
import sys
import tempfile
from dataclasses import dataclass, field, fields

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    base_path: str = "./logs"
    file_name: str = "app.log"
    max_lines: int = 10000
    max_size_kb: int = 2048
    lock_timeout: float = 2.0
    collector_url: str = ""
    project: str = "unknown-project"
    worker_executable: str = field(default_factory=lambda: sys.executable or "python3")
    async_timeout: int = 10
    sync_timeout: int = 5
    staging_dir: str = field(default_factory=tempfile.gettempdir)


# env var -> (field name, converter)
ENV_VARS = {
    "LAZYLOG_BASE_PATH": ("base_path", str),
    "LAZYLOG_FILE_NAME": ("file_name", str),
    "LAZYLOG_MAX_LINES": ("max_lines", int),
    "LAZYLOG_MAX_SIZE_KB": ("max_size_kb", int),
    "LAZYLOG_LOCK_TIMEOUT": ("lock_timeout", float),
    "LAZYLOG_COLLECTOR_URL": ("collector_url", str),
    "LAZYLOG_PROJECT": ("project", str),
    "LAZYLOG_WORKER_EXECUTABLE": ("worker_executable", str),
    "LAZYLOG_ASYNC_TIMEOUT": ("async_timeout", int),
    "LAZYLOG_SYNC_TIMEOUT": ("sync_timeout", int),
    "LAZYLOG_STAGING_DIR": ("staging_dir", str),
}


def load_yaml_config(path: str | None) -> dict:
    """Load overrides from a YAML file. Returns empty dict if no path or no file."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring it", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def load_config(path: str | None = None) -> Config:
    """Build Config from defaults <- YAML file <- env vars (highest priority)."""
    known = {f.name for f in fields(Config)}
    kwargs: dict = {}

    yaml_data = load_yaml_config(path or os.environ.get("LAZYLOG_CONFIG"))
    for key, value in yaml_data.items():
        if key in known:
            kwargs[key] = value
        else:
            logger.warning("Ignoring unknown config key %r", key)

    for env_name, (key, convert) in ENV_VARS.items():
        raw = os.environ.get(env_name)
        if raw is not None:
            kwargs[key] = convert(raw)

    return Config(**kwargs)
