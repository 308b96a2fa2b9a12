"""
Reverse-proxy wiring for compose services.

Builds the Traefik or Caddy label sets for a service and drives the
interactive flow that patches a compose manifest with them.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from eurus.config import Config, save_config
from eurus.constants import (
    CADDY_REVERSE_PROXY_LABEL,
    CADDY_SITE_LABEL,
    PROXY_TRAEFIK,
    SUPPORTED_PROXIES,
    TRAEFIK_CERT_RESOLVER_LABEL,
    TRAEFIK_NETWORK_LABEL,
    TRAEFIK_PORT_LABEL,
    TRAEFIK_RULE_LABEL,
    TRAEFIK_STATIC_LABELS,
)
from eurus.exceptions import InvalidPortValue, ValidationError
from eurus.manifest import (
    Directive,
    find_manifest,
    load_manifest,
    patch_manifest,
    routable_services,
    save_manifest,
)
from eurus.validation import parse_port

logger = logging.getLogger(__name__)

console = Console()

SKIP_PORT = "None"


def traefik_directives(rule: str, cert_resolver: str, network: str, port: int | None = None) -> list[Directive]:
    """
    Labels routing a service through Traefik over HTTPS.

    Parameters:
        rule: Router rule, e.g. Host(`app.example.com`)
        cert_resolver: Name of the Traefik certificate resolver
        network: Docker network Traefik reaches the service on
        port: Port the service listens on, when Traefik cannot guess it

    Returns:
        Ordered (key, value) label pairs
    """
    directives = list(TRAEFIK_STATIC_LABELS)
    directives.append((TRAEFIK_RULE_LABEL, rule))
    directives.append((TRAEFIK_CERT_RESOLVER_LABEL, cert_resolver))
    directives.append((TRAEFIK_NETWORK_LABEL, network))
    if port is not None:
        directives.append((TRAEFIK_PORT_LABEL, str(port)))
    return directives


def caddy_directives(site: str, port: int | None = None) -> list[Directive]:
    """
    Labels routing a service through caddy-docker-proxy.

    Parameters:
        site: Site address, e.g. app.example.com
        port: Upstream port; Caddy defaults to 80 when omitted

    Returns:
        Ordered (key, value) label pairs
    """
    upstreams = f"{{{{upstreams {port}}}}}" if port is not None else "{{upstreams}}"
    return [
        (CADDY_SITE_LABEL, site),
        (CADDY_REVERSE_PROXY_LABEL, upstreams),
    ]


# ========= Prompts ============


def _prompt_required(question: str) -> str:
    answer = Prompt.ask(question).strip()
    if not answer:
        raise ValidationError(f"A value is required: {question}")
    return answer


def prompt_proxy(config: Config) -> str:
    """Ask which reverse proxy to configure, defaulting to the last one used."""
    default = config.last_proxy if config.last_proxy in SUPPORTED_PROXIES else PROXY_TRAEFIK
    return Prompt.ask("Which reverse proxy?", choices=SUPPORTED_PROXIES, default=default)


def ensure_proxy_settings(proxy: str, config: Config, config_path: Path) -> Config:
    """
    Collect the proxy settings missing from the config and save them.

    Traefik needs its network and TLS certificate resolver; Caddy its
    ingress network.
    """
    changed = config.last_proxy != proxy
    config.last_proxy = proxy

    if proxy == PROXY_TRAEFIK:
        if not config.traefik_network:
            config.traefik_network = _prompt_required("Enter the network that traefik is on")
            changed = True
        if not config.traefik_tls:
            config.traefik_tls = _prompt_required("Enter your TLS certificate resolver for traefik")
            changed = True
    elif not config.caddy_network:
        config.caddy_network = _prompt_required("Enter the network that caddy is on")
        changed = True

    if changed and not save_config(config, config_path):
        console.print(f"[yellow]⚠[/yellow] Could not save configuration to {config_path}")
    return config


def prompt_port() -> int | None:
    """
    Ask for the port the service exposes.

    Re-prompts until the answer is a valid port; an empty answer or
    "None" skips the port.
    """
    while True:
        answer = Prompt.ask("Enter the port this application exposes", default=SKIP_PORT).strip()
        if not answer or answer == SKIP_PORT:
            return None
        try:
            return parse_port(answer)
        except InvalidPortValue as e:
            console.print(f"[red]✗[/red] {escape(str(e))}")
            logger.debug("Rejected port %r", answer)


def prompt_service(services: list[str]) -> str:
    """Select the service to route."""
    console.print("\nSelect the service to route:")
    for i, name in enumerate(services, 1):
        console.print(f"  {i}. [cyan]{name}[/cyan]")
    console.print()

    choices = [str(i) for i in range(1, len(services) + 1)]
    choice = Prompt.ask("Your choice", choices=choices, default="1")
    return services[int(choice) - 1]


# ========= Flow ============


def build_directives(proxy: str, config: Config) -> tuple[str, list[Directive]]:
    """
    Prompt for the routing target, then the port, and build the directives.

    Returns:
        Tuple of (network name, directives)
    """
    if proxy == PROXY_TRAEFIK:
        rule = _prompt_required("Enter the rule for this service [dim]e.g. Host(`app.example.com`)[/dim]")
        port = prompt_port()
        return config.traefik_network, traefik_directives(
            rule, config.traefik_tls, config.traefik_network, port
        )

    site = _prompt_required("Enter the site address for this service [dim]e.g. app.example.com[/dim]")
    port = prompt_port()
    return config.caddy_network, caddy_directives(site, port)


def run_proxy(config: Config, config_path: Path, file: str | None = None) -> Path | None:
    """
    Patch a compose manifest so that one service is routed by the proxy.

    Parameters:
        config: Loaded configuration, updated in place with new values
        config_path: Where the configuration is saved
        file: Manifest path given on the command line, if any

    Returns:
        The manifest path if it was written, None if the user cancelled

    Raises:
        DocumentError: If the manifest cannot be found, read or parsed
        ValidationError: If the manifest has no service to route
    """
    console.print("\n[bold blue]🔀 Reverse Proxy[/bold blue]\n")

    proxy = prompt_proxy(config)
    ensure_proxy_settings(proxy, config, config_path)

    manifest_path = find_manifest(file)
    document = load_manifest(manifest_path)
    console.print(f"[dim]Using {manifest_path}[/dim]")

    services = routable_services(document)
    if not services:
        raise ValidationError(f"No service with a definition in {manifest_path}")
    service_name = prompt_service(services)

    network, directives = build_directives(proxy, config)

    patched = patch_manifest(document, service_name, network, directives)

    console.print(f"\n[bold]Labels for [cyan]{service_name}[/cyan]:[/bold]")
    for key, value in directives:
        console.print(f"  • {escape(key)}={escape(value)}")

    if patched == document:
        console.print("[yellow]ℹ[/yellow] The service is already configured, nothing to do")
        logger.info("No changes for %s in %s", service_name, manifest_path)
        return None

    if not Confirm.ask(f"\nWrite changes to {manifest_path}?", default=True):
        console.print("[yellow]ℹ[/yellow] Operation cancelled")
        return None

    backup = Confirm.ask("Keep a backup of the original file?", default=True)
    backup_path = save_manifest(manifest_path, patched, backup=backup)

    console.print(f"[green]✓[/green] Routed [cyan]{service_name}[/cyan] through {proxy}")
    if backup_path:
        console.print(f"[dim]Backup written to {backup_path}[/dim]")
    return manifest_path
