"""
Loads and saves the batch policy in an INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from booth_dl.exceptions import ConfigurationError
from booth_dl.models.config import DEFAULT_POLICY, BatchPolicy

log = logging.getLogger(__name__)


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_policy(self, overrides: dict[str, Any] | None = None) -> BatchPolicy:
        """
        Loads the stored policy, applies overrides and validates the result.

        A missing file yields the documented defaults.

        Args:
            overrides: Values that take precedence over the stored ones, usually
                from the command line.

        Raises:
            ConfigurationError: If the file cannot be parsed or holds values of
            the wrong type.
        """
        settings = self.read_raw()
        if overrides:
            settings.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return BatchPolicy(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def read_raw(self) -> dict[str, Any]:
        """Reads the stored settings, falling back to defaults for missing keys."""
        if not self.config_file_path.is_file():
            log.debug(f"No config at '{self.config_file_path}', using defaults.")
            return dict(DEFAULT_POLICY)

        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
            section = self._parser["DEFAULT"]
            return {
                "rate_limited": section.getboolean(
                    "rate_limited", DEFAULT_POLICY["rate_limited"]
                ),
                "max_parallel": section.getint(
                    "max_parallel", DEFAULT_POLICY["max_parallel"]
                ),
                "inter_batch_delay_ms": section.getint(
                    "inter_batch_delay_ms", DEFAULT_POLICY["inter_batch_delay_ms"]
                ),
            }
        except (configparser.Error, ValueError) as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

    def save_policy(self, policy: BatchPolicy) -> None:
        """
        Persists the (already clamped) policy.

        Raises:
            ConfigurationError: If the file cannot be written.
        """
        config = configparser.ConfigParser()
        config["DEFAULT"] = {}
        for key in sorted(BatchPolicy.get_ini_keys()):
            value = getattr(policy, key)
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            else:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e
        log.debug(f"Saved settings to '{self.config_file_path}'")
