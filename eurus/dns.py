"""
DNS record operations for Eurus.

Interactive flow that picks a Cloudflare zone, shows its records and
creates or updates one record.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

import logging
import os
from pathlib import Path

import httpx
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, Prompt
from rich.table import Table

from eurus.client import CloudflareClient, DnsRecord
from eurus.config import Config, ZoneInfo, save_config
from eurus.constants import API_KEY_ENV_VAR, DEFAULT_RECORD_TYPE, SUPPORTED_RECORD_TYPES
from eurus.exceptions import ValidationError
from eurus.validation import mask_key, validate_record_name, validate_record_target

logger = logging.getLogger(__name__)

console = Console()


def _spinner() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    )


def _save(config: Config, config_path: Path) -> None:
    if not save_config(config, config_path):
        console.print(f"[yellow]⚠[/yellow] Could not save configuration to {config_path}")


def ensure_api_key(config: Config, config_path: Path) -> str:
    """
    Return the Cloudflare API token, prompting for it if needed.

    The token comes from the config, then the CF_API_KEY environment
    variable, then an interactive prompt. A newly collected token is saved.
    """
    if config.cloudflare_key:
        logger.debug("Using cached API key %s", mask_key(config.cloudflare_key))
        return config.cloudflare_key

    api_key = os.environ.get(API_KEY_ENV_VAR, "").strip()
    if api_key:
        logger.info("Using API key from %s", API_KEY_ENV_VAR)
    else:
        console.print(f"[dim]This can also be provided via the {API_KEY_ENV_VAR} environment variable.[/dim]")
        api_key = Prompt.ask("Cloudflare API token", password=True).strip()
        if not api_key:
            raise ValidationError("An API token is required")

    config.cloudflare_key = api_key
    _save(config, config_path)
    return api_key


def prompt_new_zone(client: CloudflareClient, config: Config, config_path: Path) -> ZoneInfo:
    """
    Ask for a zone id, look it up and add it to the cached zones.

    Raises:
        ApiError: If Cloudflare does not know the zone
    """
    console.print("[dim]The zone ID can be found on the Cloudflare dashboard.[/dim]")
    zone_id = Prompt.ask("Zone ID").strip()
    if not zone_id:
        raise ValidationError("A zone ID is required")

    with _spinner() as progress:
        progress.add_task(description="Looking up zone...", total=None)
        zone = client.get_zone(zone_id)

    console.print(f"[green]✓[/green] Found zone [cyan]{zone.name}[/cyan]")
    logger.info("Added zone %s", zone)

    config.zones = [z for z in config.zones if z.id != zone.id] + [zone]
    _save(config, config_path)
    return zone


def select_zone(client: CloudflareClient, config: Config, config_path: Path) -> ZoneInfo:
    """Pick one of the cached zones, or add a new one."""
    if not config.zones:
        return prompt_new_zone(client, config, config_path)

    console.print("\nSelect a zone:")
    for i, zone in enumerate(config.zones, 1):
        console.print(f"  {i}. [cyan]{zone}[/cyan]")
    new_idx = len(config.zones) + 1
    console.print(f"  {new_idx}. [green]Add a new zone[/green]\n")

    choices = [str(i) for i in range(1, new_idx + 1)]
    choice = int(Prompt.ask("Your choice", choices=choices, default="1"))
    if choice == new_idx:
        return prompt_new_zone(client, config, config_path)
    return config.zones[choice - 1]


def qualify_name(name: str, zone_name: str) -> str:
    """
    Turn a record name into the fully qualified name Cloudflare uses.

    "@" and an empty name designate the zone apex; relative names get the
    zone name appended.
    """
    name = name.strip().rstrip(".").lower()
    zone_name = zone_name.rstrip(".").lower()
    if name in ("", "@"):
        return zone_name
    if name == zone_name or name.endswith("." + zone_name):
        return name
    return f"{name}.{zone_name}"


def display_records(records: list[DnsRecord]) -> None:
    """Show the records of a zone in a table."""
    if not records:
        console.print("[yellow]ℹ[/yellow] No DNS records in this zone yet")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Type", width=8)
    table.add_column("Content", style="green")
    table.add_column("Proxied", justify="center", width=8)

    for record in sorted(records, key=lambda r: r.name):
        table.add_row(record.name, record.type, record.content, "✓" if record.proxied else "")

    console.print(table)


def _prompt_record_type() -> str:
    """
    Prompt the user to select a DNS record type.

    Returns:
        Selected record type string (e.g. "A", "CNAME")
    """
    console.print("\nSelect record type:")
    for i, rtype in enumerate(SUPPORTED_RECORD_TYPES, 1):
        console.print(f"  {i}. [cyan]{rtype}[/cyan]")
    console.print()

    choices = [str(i) for i in range(1, len(SUPPORTED_RECORD_TYPES) + 1)]
    default = str(SUPPORTED_RECORD_TYPES.index(DEFAULT_RECORD_TYPE) + 1)
    type_choice = Prompt.ask("Your choice", choices=choices, default=default)
    return SUPPORTED_RECORD_TYPES[int(type_choice) - 1]


def run_dns(http_client: httpx.Client, config: Config, config_path: Path) -> DnsRecord:
    """
    Create or update one DNS record.

    Parameters:
        http_client: HTTP client for the Cloudflare API
        config: Loaded configuration, updated in place with new values
        config_path: Where the configuration is saved

    Returns:
        The record as stored by Cloudflare

    Raises:
        ApiError: If any Cloudflare call fails
        ValidationError: If the user input is invalid
    """
    console.print("\n[bold green]🌐 DNS Record[/bold green]\n")

    client = CloudflareClient(http_client, ensure_api_key(config, config_path))
    zone = select_zone(client, config, config_path)

    with _spinner() as progress:
        progress.add_task(description=f"Fetching records for {zone.name}...", total=None)
        records = client.list_records(zone.id)
    logger.debug("Fetched %d records for %s", len(records), zone.name)
    display_records(records)

    subdomain = Prompt.ask("\nWhich record would you like to modify? [dim]e.g. www or @[/dim]")
    name = qualify_name(subdomain, zone.name)
    if not validate_record_name(name):
        raise ValidationError(f"Invalid record name: {name}")

    record_type = _prompt_record_type()
    target = Prompt.ask("What is the target?", default=zone.name).strip()
    is_valid, error_msg = validate_record_target(record_type, target)
    if not is_valid:
        raise ValidationError(error_msg)

    proxied = False
    if record_type != "TXT":
        proxied = Confirm.ask("Proxy through Cloudflare?", default=True)

    record = DnsRecord(name=name, type=record_type, content=target, proxied=proxied)

    with _spinner() as progress:
        progress.add_task(description=f"Saving {name} → {target} ({record_type})", total=None)
        result, updated = client.upsert_record(zone.id, record, records)

    action = "Updated" if updated else "Created"
    console.print(
        f"[green]✓[/green] {action}: [cyan]{result.name or name}[/cyan] → {target} "
        f"({record_type}, ID: {result.id or 'N/A'})"
    )
    logger.info("%s %s record %s → %s (ID: %s)", action, record_type, name, target, result.id)
    return result
