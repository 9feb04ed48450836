"""Configuration loading for the provisioning service client.

Configuration is loaded from config/config.yaml:

    provisioning:
      service_url: ${DPS_SERVICE_URL:-https://localhost}
      timeout_seconds: 100

Usage Examples
--------------

    >>> from config import load_config, get_config
    >>>
    >>> config = load_config()
    >>> config = get_config()   # singleton
    >>> config.service_url
"""

from config.config import (
    DEFAULT_CONFIG_FILE,
    ProvisioningConfig,
    configure_logging,
    get_config,
    load_config,
    load_yaml,
    reset_config,
    set_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ProvisioningConfig",
    "configure_logging",
    "load_config",
    "load_yaml",
    "get_config",
    "set_config",
    "reset_config",
]
