"""
Configuration loading.

Settings come from three layers, highest priority first:
command-line flags, an optional YAML/JSON config file, built-in defaults.
The result is a single immutable ScanConfig.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .core import ConfigurationError, ScanConfig, default_workers
from .logger import LEVELS

logger = logging.getLogger(__name__)

# Keys accepted in a config file and their types
FILE_KEYS = {
    'timeout': float,
    'read_timeout': float,
    'workers': int,
    'refresh_interval': int,
    'output_dir': str,
    'log_level': str,
    'cidr_file': str,
    'ports_file': str,
}

DEFAULTS: Dict[str, Any] = {
    'timeout': 3.0,
    'read_timeout': None,  # follows timeout
    'workers': None,       # 2 x CPUs
    'refresh_interval': 60,
    'output_dir': '.',
    'log_level': 'info',
    'cidr_file': 'Cidr.txt',
    'ports_file': 'Ports.txt',
}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load settings from a YAML file. JSON files parse too.

    Unknown keys are ignored with a warning. Empty or zero values count as
    unset, so they never override a default.

    Raises:
        ConfigurationError: unreadable file, invalid syntax, or bad values
    """
    path = Path(config_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Error opening config file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid config file {path}: expected a mapping")

    settings = {}
    for key, value in data.items():
        key = str(key).replace('-', '_')
        if key not in FILE_KEYS:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        if value in (None, '', 0):
            continue
        try:
            settings[key] = FILE_KEYS[key](value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value for {key}: {value!r}") from e

    logger.debug(f"Loaded config from: {path}")
    return settings


def merge_settings(
    cli: Mapping[str, Any],
    file_settings: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """Overlay file settings on defaults, then CLI values that were given."""
    merged = dict(DEFAULTS)
    merged.update(file_settings or {})
    merged.update({k: v for k, v in cli.items() if v is not None and k in DEFAULTS})
    return merged


def build_config(settings: Mapping[str, Any]) -> ScanConfig:
    """
    Turn merged settings into a ScanConfig.

    Raises:
        ConfigurationError: invalid log level, worker count or timeout
    """
    log_level = str(settings.get('log_level') or 'info').lower()
    if log_level not in LEVELS:
        raise ConfigurationError(
            f"Invalid log level {log_level!r} (expected one of: {', '.join(LEVELS)})"
        )

    timeout = float(settings.get('timeout') or DEFAULTS['timeout'])
    read_timeout = settings.get('read_timeout')
    workers = settings.get('workers')

    return ScanConfig(
        connect_timeout=timeout,
        read_timeout=float(read_timeout) if read_timeout else timeout,
        workers=int(workers) if workers else default_workers(),
        refresh_interval=int(settings.get('refresh_interval') or DEFAULTS['refresh_interval']),
        output_dir=str(settings.get('output_dir') or '.'),
        log_level=log_level,
    )
