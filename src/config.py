"""YAML configuration for npmctl.

Example::

    npmctl:
      npm_path: /usr/local/bin/npm
      use_fallback: true
      timeout: 300
      log_level: DEBUG
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from constants import Constants

logger = logging.getLogger(__name__)


@dataclass
class NpmctlConfig:
    """Runtime settings; CLI flags override these."""
    npm_path: Optional[str] = None
    use_fallback: bool = True
    timeout: float = Constants.COMMAND_TIMEOUT_SEC
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NpmctlConfig":
        config = cls()
        if data.get("npm_path"):
            config.npm_path = str(data["npm_path"])
        if "use_fallback" in data:
            config.use_fallback = bool(data["use_fallback"])
        if data.get("timeout") is not None:
            try:
                config.timeout = float(data["timeout"])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid timeout in config: %r", data["timeout"])
        if data.get("log_level"):
            config.log_level = str(data["log_level"]).upper()
        return config


def load_config(config_path: Optional[str]) -> NpmctlConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML file, may be None.

    Returns:
        NpmctlConfig; defaults when the file is absent or unreadable.
    """
    if not config_path:
        return NpmctlConfig()

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return NpmctlConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config: %s", e)
        return NpmctlConfig()

    if not isinstance(data, dict):
        return NpmctlConfig()
    section = data.get(Constants.CONFIG_SECTION, data)
    if not isinstance(section, dict):
        logger.warning("Ignoring non-mapping '%s' section in %s", Constants.CONFIG_SECTION, config_path)
        return NpmctlConfig()
    return NpmctlConfig.from_dict(section)
