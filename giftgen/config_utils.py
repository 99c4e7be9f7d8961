# config_utils.py - YAML Configuration System for giftgen
"""
giftgen configuration utilities with YAML file support.

Configuration Resolution Order (highest to lowest priority):
1. Explicit overrides (command-line options)
2. Environment variables (GEMINI_API_KEY, GIFTGEN_MODEL, ...)
3. giftgen.yaml in the working directory
4. ~/.giftgen/config.yaml (global defaults)

Usage:
    from giftgen.config_utils import get_config, require_api_key

    config = get_config(overrides={"model": "pro"})
    api_key = require_api_key(config)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from giftgen.batch_transfer import DEFAULT_BATCH_TIMEOUT
from giftgen.errors import ConfigurationError, missing_api_key_error
from giftgen.gemini_client import DEFAULT_BASE_URL, GENERATION_TIMEOUT, resolve_model
from giftgen.security_utils import check_file_permissions


logger = logging.getLogger(__name__)

CONFIG_FILENAME = "giftgen.yaml"


@dataclass
class GiftGenConfig:
    """Complete giftgen configuration"""
    # Gemini connection
    api_key: Optional[str] = None
    model: str = resolve_model(None)
    base_url: str = DEFAULT_BASE_URL

    # Generation
    num_questions: int = 5
    request_timeout: float = float(GENERATION_TIMEOUT[1])
    max_attempts: Optional[int] = None
    include_explanations: bool = False

    # Transfers
    batch_timeout: Optional[float] = DEFAULT_BATCH_TIMEOUT

    # Extra settings from config file
    extra: Dict[str, Any] = field(default_factory=dict)

    # Track where values came from (for debugging)
    _sources: Dict[str, str] = field(default_factory=dict)


_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0", ""}


def _to_bool(value: Any) -> bool:
    """Boolean from YAML, environment or CLI values; "false" stays False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"not a boolean: {value!r}")


# YAML key -> (attribute, converter)
_SETTINGS = {
    "api_key": ("api_key", str),
    "model": ("model", resolve_model),
    "base_url": ("base_url", str),
    "num_questions": ("num_questions", int),
    "request_timeout": ("request_timeout", float),
    "max_attempts": ("max_attempts", lambda v: int(v) if v else None),
    "include_explanations": ("include_explanations", _to_bool),
    "batch_timeout": ("batch_timeout", lambda v: float(v) if v else None),
}


class ConfigLoader:
    """Load configuration from multiple sources"""

    def __init__(self, work_dir: Optional[Path] = None, home_dir: Optional[Path] = None):
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()
        self.home_dir = Path(home_dir) if home_dir else Path.home()
        self.config = GiftGenConfig()

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> GiftGenConfig:
        """Load configuration from all sources in priority order"""
        # Load in reverse priority (lowest first, higher overwrites)
        self._load_yaml_file(self.home_dir / ".giftgen" / "config.yaml", "global")
        self._load_yaml_file(self.work_dir / CONFIG_FILENAME, CONFIG_FILENAME)
        self._load_env_vars()
        if overrides:
            self._apply(overrides, "cli")
        self._validate()
        return self.config

    def _load_yaml_file(self, path: Path, source_name: str):
        """Load settings from a YAML file"""
        if not path.exists():
            return
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("[config] Failed to parse %s: %s", path, e)
            return
        if not isinstance(data, dict):
            logger.warning("[config] Ignoring %s: expected a mapping at top level", path)
            return

        if data.get("api_key"):
            check_file_permissions(path)

        self._apply(data, source_name)

        for key, value in data.items():
            if key not in _SETTINGS:
                self.config.extra[key] = value

    def _load_env_vars(self):
        """Load from environment variables"""
        env_map = {
            "GEMINI_API_KEY": "api_key",
            "GIFTGEN_MODEL": "model",
            "GIFTGEN_BASE_URL": "base_url",
            "GIFTGEN_BATCH_TIMEOUT": "batch_timeout",
        }
        for var, key in env_map.items():
            value = os.environ.get(var)
            if value:
                self._apply({key: value}, f"env:{var}")

    def _apply(self, values: Dict[str, Any], source_name: str):
        for key, value in values.items():
            if key not in _SETTINGS or value is None:
                continue
            attr, convert = _SETTINGS[key]
            try:
                setattr(self.config, attr, convert(value))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    message=f"Invalid value for {key}: {value!r}",
                    context={"source": source_name},
                    cause=e,
                ) from e
            self.config._sources[attr] = source_name

    def _validate(self):
        if self.config.num_questions <= 0:
            raise ConfigurationError(
                message="Number of questions must be positive",
                context={"num_questions": self.config.num_questions,
                         "source": self.config._sources.get("num_questions", "default")},
            )


# ============================================================================
# Public API
# ============================================================================

def get_config(
    work_dir: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> GiftGenConfig:
    """
    Get complete giftgen configuration.

    Args:
        work_dir: Directory searched for giftgen.yaml (defaults to cwd)
        overrides: Highest-priority values, usually from command-line options;
            None values are ignored

    Returns:
        GiftGenConfig with all settings resolved
    """
    return ConfigLoader(work_dir).load(overrides)


def require_api_key(config: GiftGenConfig) -> str:
    """
    Return the configured API key.

    Raises:
        ConfigurationError: If no source provided one
    """
    if not config.api_key:
        raise missing_api_key_error()
    return config.api_key
