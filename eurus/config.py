"""
Local configuration store.

Caches the Cloudflare API token, the zones already looked up and the
proxy settings entered on previous runs, as JSON in the per-user config
directory.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

from eurus.exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class ZoneInfo:
    """A Cloudflare zone the user has selected before."""

    id: str
    name: str

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


@dataclass
class Config:
    """Cached credentials, zones and proxy settings."""

    zones: list[ZoneInfo] = field(default_factory=list)
    cloudflare_key: str = ""
    traefik_network: str = ""
    traefik_tls: str = ""
    caddy_network: str = ""
    last_proxy: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """
        Build a Config from decoded JSON.

        Raises:
            ConfigError: If the data does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be an object")
        try:
            zones = [ZoneInfo(id=str(z["id"]), name=str(z["name"])) for z in data.get("zones") or []]
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Configuration zones are malformed: {e}") from e

        return cls(
            zones=zones,
            cloudflare_key=str(data.get("cloudflare_key") or ""),
            traefik_network=str(data.get("traefik_network") or ""),
            traefik_tls=str(data.get("traefik_tls") or ""),
            caddy_network=str(data.get("caddy_network") or ""),
            last_proxy=str(data.get("last_proxy") or ""),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def load_config(path: Path) -> Config:
    """
    Load the configuration file.

    Parameters:
        path: Path of the JSON config file

    Returns:
        The loaded Config

    Raises:
        ConfigError: If the file is missing, unreadable or malformed
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"No configuration file at {path}") from e
    except OSError as e:
        raise ConfigError(f"Could not read configuration {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Configuration {path} is malformed: {e}") from e

    config = Config.from_dict(data)
    logger.debug("Loaded configuration from %s (%d zone(s))", path, len(config.zones))
    return config


def load_or_default(path: Path) -> Config:
    """
    Load the configuration, falling back to an empty one.

    A missing or broken file is not fatal: the missing values are
    prompted for again and saved back.
    """
    try:
        return load_config(path)
    except ConfigError as e:
        logger.warning("Starting from an empty configuration: %s", e)
        return Config()


def save_config(config: Config, path: Path) -> bool:
    """
    Save the configuration file with restricted permissions.

    Parameters:
        config: Configuration to save
        path: Path of the JSON config file

    Returns:
        True if saved successfully, False otherwise
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
        path.chmod(0o600)
    except OSError as e:
        logger.error("Failed to save configuration to %s: %s", path, e)
        return False

    logger.info("Configuration saved to %s", path)
    return True
