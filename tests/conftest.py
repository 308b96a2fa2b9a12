"""
Shared pytest fixtures for Eurus tests.
"""

import json

import httpx
import pytest
import respx

from eurus.constants import CLOUDFLARE_BASE_URL


@pytest.fixture
def mock_http():
    """
    Intercept all httpx calls made during the test.

    Returns:
        respx.MockRouter: Router to register Cloudflare routes on
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def http_client():
    """An httpx client pointed at the Cloudflare API."""
    with httpx.Client(base_url=CLOUDFLARE_BASE_URL) as client:
        yield client


@pytest.fixture
def sample_dns_records():
    """
    Sample Cloudflare DNS record payloads.

    Returns:
        list[dict]: Records as found in a list response's "result"
    """
    return [
        {"id": "rec1", "name": "example.com", "type": "A", "content": "1.2.3.4", "proxied": True},
        {"id": "rec2", "name": "www.example.com", "type": "CNAME", "content": "example.com", "proxied": True},
        {"id": "rec3", "name": "mail.example.com", "type": "A", "content": "5.6.7.8", "proxied": False},
    ]


@pytest.fixture
def tmp_config_file(tmp_path):
    """
    Create a temporary config file with a key, a zone and traefik settings.

    Returns:
        Path: Path to the temporary config.json
    """
    config_file = tmp_path / "eurus" / "config.json"
    config_file.parent.mkdir()
    config_file.write_text(json.dumps({
        "zones": [{"id": "zone123", "name": "example.com"}],
        "cloudflare_key": "test_api_key_1234",
        "traefik_network": "proxy",
        "traefik_tls": "letsencrypt",
        "caddy_network": "",
    }))
    return config_file


@pytest.fixture
def compose_document():
    """
    A compose manifest with list-style labels and networks.

    Returns:
        dict: Parsed manifest
    """
    return {
        "name": "demo",
        "services": {
            "web": {
                "image": "nginx:latest",
                "labels": ["com.example.team=ops"],
                "networks": ["default"],
            },
            "db": {
                "image": "postgres:16",
                "environment": {"POSTGRES_PASSWORD": "secret"},
            },
            "placeholder": None,
        },
        "networks": {"default": None},
        "volumes": {"data": None},
    }


@pytest.fixture
def compose_file(tmp_path):
    """
    Write a compose.yaml into a temporary directory.

    Returns:
        Path: Path to the compose file
    """
    path = tmp_path / "compose.yaml"
    path.write_text(
        "name: demo\n"
        "services:\n"
        "  web:\n"
        "    image: nginx:latest\n"
        "    labels:\n"
        "      com.example.team: ops\n"
        "    networks:\n"
        "      default:\n"
        "        aliases:\n"
        "          - www\n"
        "  db:\n"
        "    image: postgres:16\n"
        "networks:\n"
        "  default:\n"
        "volumes:\n"
        "  data:\n"
    )
    return path
