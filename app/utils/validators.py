"""Input validation utilities."""

import ipaddress
import re

from app.utils.exceptions import InvalidImageRequestError

_HOSTNAME = re.compile(r"^[A-Za-z0-9.-]+(:\d{1,5})?$")

BLOCKED_HOSTS = {
    "localhost",
    "0.0.0.0",
}


def validate_host(host: str) -> str:
    """
    Validate an upstream host taken from caller input to prevent SSRF attacks.

    Args:
        host: Hostname, optionally with a port

    Returns:
        Validated host string

    Raises:
        InvalidImageRequestError: If the host is malformed or points to a private address
    """
    if not host or not isinstance(host, str):
        raise InvalidImageRequestError("Host must be a non-empty string")

    host = host.strip()
    if not _HOSTNAME.match(host):
        raise InvalidImageRequestError(f"Invalid host: {host}")

    hostname = host.rsplit(":", 1)[0].lower().rstrip(".")
    if hostname in BLOCKED_HOSTS or hostname.endswith(".localhost"):
        raise InvalidImageRequestError("Host cannot point to localhost or private IPs")

    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return host

    if address.is_private or address.is_loopback or address.is_link_local or address.is_unspecified:
        raise InvalidImageRequestError("Host cannot point to localhost or private IPs")

    return host
