"""
Constants used throughout the Eurus package.

This module centralizes all constant values including the Cloudflare API
location, supported DNS record types, validation regexes, manifest file
names, proxy label templates and filesystem paths for the config store.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

import os
import re
import sys
from pathlib import Path

# Cloudflare v4 REST API
CLOUDFLARE_BASE_URL = "https://api.cloudflare.com/client/v4"

# Environment variable that can provide the Cloudflare API token
API_KEY_ENV_VAR = "CF_API_KEY"

# HTTP timeout for Cloudflare calls, in seconds
HTTP_TIMEOUT = 30.0

# Supported DNS record types for create/update operations
SUPPORTED_RECORD_TYPES = ["A", "AAAA", "CNAME", "TXT"]
DEFAULT_RECORD_TYPE = "CNAME"

# Regex for validating host names (RFC 1123 labels, optional trailing dot)
HOSTNAME_REGEX = re.compile(
    r"^(?!-)[A-Za-z0-9_-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9_-]{1,63}(?<!-))*\.?$"
)

# Manifest file names looked up in the working directory, in order
COMPOSE_FILENAMES = (
    "compose.yaml",
    "compose.yml",
    "docker-compose.yaml",
    "docker-compose.yml",
)

BACKUP_SUFFIX = ".bak"

# Supported reverse proxies
PROXY_TRAEFIK = "traefik"
PROXY_CADDY = "caddy"
SUPPORTED_PROXIES = [PROXY_TRAEFIK, PROXY_CADDY]

# Traefik label keys; ${COMPOSE_PROJECT_NAME} is interpolated by compose
TRAEFIK_STATIC_LABELS = [
    ("traefik.enable", "true"),
    ("traefik.http.routers.${COMPOSE_PROJECT_NAME}.entrypoints", "websecure"),
    ("traefik.http.routers.${COMPOSE_PROJECT_NAME}.tls", "true"),
]
TRAEFIK_RULE_LABEL = "traefik.http.routers.${COMPOSE_PROJECT_NAME}.rule"
TRAEFIK_CERT_RESOLVER_LABEL = "traefik.http.routers.${COMPOSE_PROJECT_NAME}.tls.certresolver"
TRAEFIK_NETWORK_LABEL = "traefik.docker.network"
TRAEFIK_PORT_LABEL = "traefik.http.services.${COMPOSE_PROJECT_NAME}.loadbalancer.server.port"

# caddy-docker-proxy label keys
CADDY_SITE_LABEL = "caddy"
CADDY_REVERSE_PROXY_LABEL = "caddy.reverse_proxy"


def _config_home() -> Path:
    """Return the per-user configuration root for the current platform."""
    if sys.platform == "win32" and os.environ.get("APPDATA"):
        return Path(os.environ["APPDATA"])
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


# Config file path: ~/.config/eurus/config.json
# Respects XDG_CONFIG_HOME if set, otherwise defaults to ~/.config
CONFIG_DIR = _config_home() / "eurus"
CONFIG_FILE = CONFIG_DIR / "config.json"
