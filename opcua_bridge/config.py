"""
OPC UA bridge configuration.

This module provides:
- DriverConfig: per-device connection settings taken from the device's
  "opcua" protocol properties
- load_config: loader for the service JSON file describing the devices
  served by a static metadata service
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigurationError
from .opcua_logging import log_info, log_error

PROTOCOL_NAME = "opcua"

# Protocol property keys
ENDPOINT = "Endpoint"
POLICY = "Policy"
MODE = "Mode"
CERT_FILE = "CertFile"
KEY_FILE = "KeyFile"
RESOURCES = "Resources"
PUBLISHING_INTERVAL = "PublishingInterval"

DEFAULT_PUBLISHING_INTERVAL_MS = 100.0


@dataclass
class DriverConfig:
    """Connection and subscription settings for one device."""
    endpoint: str
    security_policy: str = "None"
    security_mode: str = "None"
    cert_file: str = ""
    key_file: str = ""
    resources: list[str] = field(default_factory=list)
    publishing_interval_ms: float = DEFAULT_PUBLISHING_INTERVAL_MS

    @classmethod
    def from_protocol_properties(cls, protocols: dict[str, Any]) -> 'DriverConfig':
        """
        Create from a device's protocol property map.

        Args:
            protocols: Mapping of protocol name to its properties; only the
                "opcua" entry is used

        Raises:
            ConfigurationError: If the opcua properties are missing or invalid
        """
        properties = protocols.get(PROTOCOL_NAME)
        if properties is None:
            raise ConfigurationError(f"device has no '{PROTOCOL_NAME}' protocol properties")

        endpoint = str(properties.get(ENDPOINT, "")).strip()
        if not endpoint:
            raise ConfigurationError(f"'{ENDPOINT}' is not configured")

        interval = properties.get(PUBLISHING_INTERVAL, DEFAULT_PUBLISHING_INTERVAL_MS)
        try:
            interval = float(interval)
        except (TypeError, ValueError):
            raise ConfigurationError(f"invalid {PUBLISHING_INTERVAL}: {interval!r}")
        if interval <= 0:
            raise ConfigurationError(f"{PUBLISHING_INTERVAL} must be positive, got {interval}")

        return cls(
            endpoint=endpoint,
            security_policy=str(properties.get(POLICY) or "None"),
            security_mode=str(properties.get(MODE) or "None"),
            cert_file=str(properties.get(CERT_FILE) or ""),
            key_file=str(properties.get(KEY_FILE) or ""),
            resources=_parse_resources(properties.get(RESOURCES)),
            publishing_interval_ms=interval,
        )


def _parse_resources(raw: Any) -> list[str]:
    """Accept either a comma separated string or a list of names."""
    if raw is None:
        return []
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw]
    else:
        raise ConfigurationError(f"invalid {RESOURCES}: {raw!r}")
    return [item.strip() for item in items if item.strip()]


def load_config(config_path: str) -> Optional[dict]:
    """
    Load the bridge service configuration from a JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary or None if loading fails
    """
    try:
        path = Path(config_path)
        if not path.exists():
            log_error(f"Configuration file not found: {config_path}")
            return None

        with open(path, 'r') as f:
            raw_config = json.load(f)

        config = _normalize_config(raw_config)

        if not _validate_config(config):
            return None

        log_info(f"Configuration loaded from {config_path}")
        return config

    except json.JSONDecodeError as e:
        log_error(f"Invalid JSON in configuration file: {e}")
        return None
    except OSError as e:
        log_error(f"Failed to load configuration: {e}")
        return None


def _normalize_config(raw_config: Any) -> dict:
    """
    Normalize configuration to the service format.

    Handles both:
    - A bare list of device definitions
    - A dictionary with "service" and "devices" sections
    """
    defaults = get_default_config()

    if isinstance(raw_config, list):
        return {"service": defaults["service"], "devices": raw_config}

    if not isinstance(raw_config, dict):
        return {}

    service = dict(defaults["service"])
    service.update(raw_config.get("service", {}))
    return {"service": service, "devices": raw_config.get("devices", [])}


def _validate_config(config: dict) -> bool:
    """
    Validate configuration structure.

    Returns:
        True if configuration is valid
    """
    if "devices" not in config:
        log_error("Missing required configuration section: devices")
        return False

    for index, device in enumerate(config["devices"]):
        if not isinstance(device, dict) or "name" not in device:
            log_error(f"Device entry {index} has no name")
            return False

        properties = device.get("protocols", {}).get(PROTOCOL_NAME)
        if not properties or ENDPOINT not in properties:
            log_error(f"Missing protocols.{PROTOCOL_NAME}.{ENDPOINT} for device '{device['name']}'")
            return False

        for resource in device.get("resources", []):
            if "name" not in resource or "value_type" not in resource:
                log_error(f"Device '{device['name']}' has a resource without name or value_type")
                return False

    return True


def get_default_config() -> dict:
    """
    Get default configuration for development/testing.

    Returns:
        Default configuration dictionary
    """
    return {
        "service": {
            "log_level": "INFO",
            "certs_dir": "certs",
            "application_uri": "urn:opcua-bridge:client",
        },
        "devices": [],
    }
