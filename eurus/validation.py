"""
Input validation utilities for Eurus.

Provides validation functions for host names, DNS record targets and
network ports, and a helper to mask the API token for display purposes.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

import ipaddress
import logging

from eurus.constants import HOSTNAME_REGEX
from eurus.exceptions import InvalidPortValue

logger = logging.getLogger(__name__)

MAX_PORT = 65535


def mask_key(key: str) -> str:
    """
    Mask a sensitive key, showing only the last 4 characters.

    Parameters:
        key: The key to mask

    Returns:
        The masked key (e.g. "***abcd")
    """
    if len(key) <= 4:
        return "***"
    return "***" + key[-4:]


def validate_hostname(hostname: str) -> bool:
    """
    Validate a host name, relative or fully qualified.

    Parameters:
        hostname: The host name to validate

    Returns:
        True if the host name is valid
    """
    return bool(HOSTNAME_REGEX.match(hostname))


def validate_record_name(name: str) -> bool:
    """
    Validate the name of a DNS record.

    Same rules as a host name, except that the leftmost label may be a
    "*" wildcard.
    """
    if name == "*":
        return True
    if name.startswith("*."):
        name = name[2:]
    return validate_hostname(name)



def parse_port(value: str) -> int:
    """
    Parse a network port typed by the user.

    Parameters:
        value: Raw input text

    Returns:
        The port as an int

    Raises:
        InvalidPortValue: If the value is not an unsigned 16-bit integer
    """
    text = value.strip()
    if not text.isascii() or not text.isdigit():
        raise InvalidPortValue(value)
    port = int(text)
    if port > MAX_PORT:
        raise InvalidPortValue(value)
    return port


def validate_record_target(record_type: str, target: str) -> tuple[bool, str]:
    """
    Validate the target value based on the record type.

    Parameters:
        record_type: DNS record type (A, AAAA, CNAME, TXT)
        target: The target value to validate

    Returns:
        Tuple of (is_valid, error_message). error_message is empty if valid.
    """
    if not target.strip():
        return False, "Target cannot be empty"

    target = target.strip()

    if record_type == "A":
        try:
            ip_obj = ipaddress.ip_address(target)
            if not isinstance(ip_obj, ipaddress.IPv4Address):
                return False, "A record requires an IPv4 address, got IPv6"
        except ValueError:
            return False, "Invalid IPv4 address"

    elif record_type == "AAAA":
        try:
            ip_obj = ipaddress.ip_address(target)
            if not isinstance(ip_obj, ipaddress.IPv6Address):
                return False, "AAAA record requires an IPv6 address, got IPv4"
        except ValueError:
            return False, "Invalid IPv6 address"

    elif record_type == "CNAME":
        if not validate_hostname(target):
            return False, "CNAME target must be a host name (e.g. host.example.com)"

    # TXT: no special validation needed, any string is valid

    return True, ""
