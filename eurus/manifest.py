"""
Compose manifest loading, patching and saving.

The patch merges routing labels into one service, makes sure the shared
proxy network is declared as external, and attaches the service to it.
Labels may be written as a list of ``key=value`` strings or as a mapping,
and service networks as a list of names or as a mapping; both forms are
handled.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

import copy
import io
import logging
import shutil
from pathlib import Path
from typing import Any, Callable, Iterable

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from eurus.constants import BACKUP_SUFFIX, COMPOSE_FILENAMES
from eurus.exceptions import (
    DocumentError,
    InvalidDocumentSyntax,
    MissingManifestFile,
    MissingService,
    ValidationError,
)

logger = logging.getLogger(__name__)

Directive = tuple[str, str]


# ========= Labels ============


def _label_key(entry: Any) -> str:
    """Key part of a ``key=value`` list entry."""
    return str(entry).split("=", 1)[0]


def add_label_if_absent(labels: list | dict, key: str, value: str) -> bool:
    """
    Add a label unless one with the same key already exists.

    Parameters:
        labels: Service labels, list of "key=value" strings or a mapping
        key: Label key
        value: Label value

    Returns:
        True if the label was added
    """
    if isinstance(labels, dict):
        if key in labels:
            return False
        labels[key] = value
        return True

    if any(_label_key(entry) == key for entry in labels):
        return False
    labels.append(f"{key}={value}")
    return True


# ========= Networks ============


def attach_network(networks: list | dict, name: str) -> bool:
    """
    Attach a network to a service's network list or mapping.

    Parameters:
        networks: Service networks, list of names or name -> settings mapping
        name: Network name

    Returns:
        True if the network was attached
    """
    if isinstance(networks, dict):
        if name in networks:
            return False
        networks[name] = None
        return True

    if name in networks:
        return False
    networks.append(name)
    return True


def _external_network(existing: Any, factory: Callable[[], dict]) -> dict:
    """Settings record for the proxy network, marked external if unset."""
    if existing is None:
        settings = factory()
    elif isinstance(existing, dict):
        settings = existing
    else:
        raise InvalidDocumentSyntax(f"Network definition must be a mapping, got {type(existing).__name__}")
    if settings.get("external") is None:
        settings["external"] = True
    return settings


# ========= Patch ============


def routable_services(document: dict) -> list[str]:
    """Return the names of services that have a definition."""
    services = document.get("services") or {}
    if not isinstance(services, dict):
        raise InvalidDocumentSyntax("Top-level services must be a mapping")
    return [name for name, service in services.items() if service]


def patch_manifest(
    document: dict,
    service_name: str,
    network_name: str,
    directives: Iterable[Directive],
    network_settings_factory: Callable[[], dict] = dict,
) -> dict:
    """
    Merge routing directives and network wiring into one service.

    The input document is left untouched; a patched copy is returned.
    Directives are applied in order with set-if-absent semantics, so a
    key that is already present keeps its value, and when two directives
    share a key the first one wins.

    Parameters:
        document: Parsed compose manifest
        service_name: Service to patch
        network_name: External network shared by routed services
        directives: Ordered (key, value) label pairs
        network_settings_factory: Builds the settings of a new network

    Returns:
        The patched document

    Raises:
        MissingService: If the service is absent or has no definition
        ValidationError: If the network name is empty
        InvalidDocumentSyntax: If the touched entries have an unexpected shape
    """
    if not network_name:
        raise ValidationError("Network name cannot be empty")

    patched = copy.deepcopy(document)
    services = patched.get("services") or {}
    if not isinstance(services, dict):
        raise InvalidDocumentSyntax("Top-level services must be a mapping")
    service = services.get(service_name)
    if not service:
        raise MissingService(service_name)
    if not isinstance(service, dict):
        raise InvalidDocumentSyntax(f"Service '{service_name}' must be a mapping")

    labels = service.get("labels")
    if labels is None:
        labels = service["labels"] = []
    elif not isinstance(labels, (list, dict)):
        raise InvalidDocumentSyntax(f"Labels of service '{service_name}' must be a list or a mapping")

    for key, value in directives:
        if add_label_if_absent(labels, key, value):
            logger.debug("Added label %s=%s to %s", key, value, service_name)
        else:
            logger.debug("Label %s already set on %s, keeping existing value", key, service_name)

    networks_table = patched.get("networks")
    if networks_table is None:
        networks_table = patched["networks"] = {}
    elif not isinstance(networks_table, dict):
        raise InvalidDocumentSyntax("Top-level networks must be a mapping")
    networks_table[network_name] = _external_network(
        networks_table.get(network_name), network_settings_factory
    )

    service_networks = service.get("networks")
    if service_networks is None:
        service_networks = service["networks"] = []
    elif not isinstance(service_networks, (list, dict)):
        raise InvalidDocumentSyntax(f"Networks of service '{service_name}' must be a list or a mapping")
    if attach_network(service_networks, network_name):
        logger.debug("Attached %s to network %s", service_name, network_name)

    services[service_name] = service
    logger.info("Patched service %s for network %s", service_name, network_name)
    return patched


# ========= File I/O ============


def find_manifest(path: str | Path | None = None, cwd: Path | None = None) -> Path:
    """
    Locate the manifest to patch.

    Parameters:
        path: Explicit path given on the command line, if any
        cwd: Directory searched for conventional file names

    Returns:
        Path of an existing manifest

    Raises:
        MissingManifestFile: If no manifest can be found
    """
    if path is not None:
        manifest = Path(path)
        if not manifest.is_file():
            raise MissingManifestFile(f"The file {manifest} does not exist")
        return manifest

    base = cwd or Path.cwd()
    for name in COMPOSE_FILENAMES:
        candidate = base / name
        if candidate.is_file():
            logger.debug("Using manifest %s", candidate)
            return candidate

    raise MissingManifestFile(
        f"Could not find a compose file in {base} (tried {', '.join(COMPOSE_FILENAMES)})"
    )


def _yaml() -> YAML:
    """Round-trip YAML 1.2 codec in the usual compose layout."""
    codec = YAML(typ="rt")
    codec.preserve_quotes = True
    codec.indent(mapping=2, sequence=4, offset=2)
    codec.width = 4096
    return codec


def parse_manifest(contents: str, source: str = "<string>") -> dict:
    """
    Parse manifest text, keeping comments, quoting and scalars as written.

    Raises:
        InvalidDocumentSyntax: If the YAML is invalid or its root is not a mapping
    """
    try:
        document = _yaml().load(contents)
    except YAMLError as e:
        raise InvalidDocumentSyntax(f"The compose file {source} is not valid YAML: {e}") from e

    if not isinstance(document, dict):
        raise InvalidDocumentSyntax(f"The compose file {source} must contain a mapping at its root")
    return document


def load_manifest(path: Path) -> dict:
    """
    Read and parse a compose manifest.

    Raises:
        DocumentError: If the file cannot be read
        InvalidDocumentSyntax: If the YAML is invalid or its root is not a mapping
    """
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Could not read {path}: {e}") from e

    return parse_manifest(contents, str(path))


def dump_manifest(document: dict) -> str:
    """Serialize a manifest, keeping key order and comments."""
    stream = io.StringIO()
    _yaml().dump(document, stream)
    return stream.getvalue()


def save_manifest(path: Path, document: dict, backup: bool = True) -> Path | None:
    """
    Write a manifest back to disk, optionally keeping a copy of the original.

    Parameters:
        path: Manifest path
        document: Document to write
        backup: Copy the current file to "<name>.bak" before overwriting

    Returns:
        Path of the backup, or None when no backup was written
    """
    contents = dump_manifest(document)
    backup_path = None
    try:
        if backup and path.exists():
            backup_path = path.with_name(path.name + BACKUP_SUFFIX)
            shutil.copy2(path, backup_path)
            logger.debug("Backed up %s to %s", path, backup_path)
        path.write_text(contents, encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Could not write {path}: {e}") from e

    logger.info("Wrote manifest %s", path)
    return backup_path
