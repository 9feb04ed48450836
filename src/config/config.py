"""Provisioning service client configuration from YAML file.

Loads from config/config.yaml with all settings in one place:
- Service endpoint and timeouts
- Logging settings

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
DPS_SERVICE_URL and DPS_TIMEOUT_SECONDS override the file values directly.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.logging.setup import setup_logging

logger = logging.getLogger(__name__)


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


# Default config file: config/config.yaml in src/ directory
DEFAULT_CONFIG_FILE = Path(__file__).parent.parent / "config" / "config.yaml"

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ProvisioningConfig:
    """Provisioning service client configuration.

    Configuration structure:
        provisioning:
          service_url: https://myinstance.azure-devices-provisioning.net
          timeout_seconds: 100
          slow_request_seconds: 2.0
          logging:
            level: INFO
            json: true
            dir: logs
            to_file: false

    All timing values in seconds.
    """

    service_url: str = ""
    timeout_seconds: float = 100.0
    slow_request_seconds: float = 2.0

    log_level: str = "INFO"
    log_json: bool = True
    log_dir: str = "logs"
    log_to_file: bool = False

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any setting is missing or out of range
        """
        if not self.service_url:
            raise ValueError(
                "provisioning.service_url is required. "
                "Set DPS_SERVICE_URL environment variable or configure it in config.yaml."
            )
        if not self.service_url.startswith(("http://", "https://")):
            raise ValueError(
                f"provisioning.service_url must start with http:// or https://, got: {self.service_url!r}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(f"provisioning.timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.slow_request_seconds <= 0:
            raise ValueError(
                f"provisioning.slow_request_seconds must be > 0, got {self.slow_request_seconds}"
            )
        if self.log_level.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"provisioning.logging.level must be one of {_VALID_LOG_LEVELS}, got {self.log_level!r}"
            )


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _parse_bool(value: Any, default: bool) -> bool:
    """Parse a YAML or environment-expanded value as a boolean."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ProvisioningConfig:
    """Load provisioning configuration from config.yaml file.

    Environment variables ARE supported using ${VAR_NAME} syntax in YAML files.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n" f"Expected file: config/config.yaml"
        )

    logger.info("Loading configuration from file", extra={"config_path": str(config_path)})
    yaml_data = load_yaml(config_path)
    yaml_data = _expand_env_vars(yaml_data)

    if "provisioning" not in yaml_data:
        raise ValueError("Invalid config file: missing 'provisioning:' section")

    section = yaml_data["provisioning"] or {}

    if overrides:
        logger.debug(f"Applying overrides: {list(overrides.keys())}")
        section = _deep_merge(section, overrides)

    logging_section = section.get("logging", {}) or {}

    config = ProvisioningConfig(
        service_url=(os.getenv("DPS_SERVICE_URL") or section.get("service_url", "")).rstrip("/"),
        timeout_seconds=float(
            os.getenv("DPS_TIMEOUT_SECONDS") or section.get("timeout_seconds", 100.0)
        ),
        slow_request_seconds=float(section.get("slow_request_seconds", 2.0)),
        log_level=str(logging_section.get("level", "INFO")).upper(),
        log_json=_parse_bool(logging_section.get("json"), True),
        log_dir=str(logging_section.get("dir", "logs")),
        log_to_file=_parse_bool(logging_section.get("to_file"), False),
    )

    logger.debug("Validating configuration...")
    config.validate()
    logger.debug("Configuration validation passed")

    return config


def configure_logging(config: ProvisioningConfig, name: str = "provisioning") -> logging.Logger:
    """Apply the logging section of a loaded configuration."""
    return setup_logging(
        name=name,
        log_dir=Path(config.log_dir),
        json_format=config.log_json,
        console_level=getattr(logging, config.log_level.upper()),
        log_to_file=config.log_to_file,
    )


_provisioning_config: Optional[ProvisioningConfig] = None


def get_config() -> ProvisioningConfig:
    """Get or load the singleton provisioning config instance."""
    global _provisioning_config
    if _provisioning_config is None:
        _provisioning_config = load_config()
    return _provisioning_config


def set_config(config: ProvisioningConfig) -> None:
    """Set the singleton provisioning config instance (useful for testing)."""
    global _provisioning_config
    _provisioning_config = config


def reset_config() -> None:
    """Reset the singleton config instance (forces reload on next get_config() call)."""
    global _provisioning_config
    _provisioning_config = None
