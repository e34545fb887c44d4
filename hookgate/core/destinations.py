"""Webhook target validation.

Target URLs are supplied by tenants, so they are checked twice: statically
when registered (HTTPS only, no private IP literals) and again right before
every POST, after DNS resolution, so a hostname cannot be pointed at the
platform's own network.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from collections.abc import Awaitable, Callable
from urllib.parse import urlsplit, urlunsplit

from hookgate.core.errors import DestinationBlockedError, WebhookUrlError

Resolver = Callable[[str, int], Awaitable[list[str]]]


def _parse_ip(value: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    try:
        return ipaddress.ip_address(value.split("%", 1)[0])
    except ValueError:
        return None


def is_public_address(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    """True only for globally routable unicast addresses."""
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    if address.is_multicast or address.is_unspecified:
        return False
    return address.is_global


def validate_webhook_url(url: str | None, *, allow_private: bool = False) -> str:
    """Validate a webhook target URL at registration time.

    The scheme and host are returned lower-cased so stored URLs always start
    with ``https://``.

    Raises:
        WebhookUrlError: if the URL is missing, malformed, not HTTPS or
            points at a non-public IP literal.
    """
    if not url or not url.strip():
        raise WebhookUrlError("URL is required")

    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
        # Accessing .port validates the port component
        _ = parts.port
    except ValueError:
        raise WebhookUrlError("Invalid URL format") from None

    if not parts.scheme or not parts.hostname:
        raise WebhookUrlError("Invalid URL format")
    if parts.scheme.lower() != "https":
        raise WebhookUrlError("Webhook URL must use HTTPS")

    literal = _parse_ip(parts.hostname)
    if literal is None:
        try:
            parts.hostname.encode("idna")
        except UnicodeError:
            raise WebhookUrlError("Invalid URL format") from None

    if literal is not None and not allow_private and not is_public_address(literal):
        raise WebhookUrlError("Webhook URL must not target a private network address")
    if parts.hostname.lower() == "localhost" and not allow_private:
        raise WebhookUrlError("Webhook URL must not target a private network address")

    netloc = parts.netloc
    if "@" not in netloc:
        netloc = netloc.lower()
    return urlunsplit(parts._replace(scheme="https", netloc=netloc))


async def system_resolver(host: str, port: int) -> list[str]:
    """Resolve ``host`` with the event loop's resolver."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


async def ensure_public_destination(url: str, resolver: Resolver = system_resolver) -> None:
    """Refuse delivery to hosts resolving to internal addresses.

    Raises:
        DestinationBlockedError: if the host resolves to any non-public address.
        OSError: if resolution itself fails (treated as a transport error).
        UnicodeError: if the host cannot be IDNA-encoded for resolution.
    """
    parts = urlsplit(url)
    host = parts.hostname or ""
    if not host:
        raise DestinationBlockedError(host, "missing host")

    literal = _parse_ip(host)
    if literal is not None:
        addresses = [str(literal)]
    else:
        addresses = await resolver(host, parts.port or 443)

    if not addresses:
        raise DestinationBlockedError(host, "no addresses resolved")

    for value in addresses:
        address = _parse_ip(value)
        if address is None or not is_public_address(address):
            raise DestinationBlockedError(host, f"resolves to non-public address {value}")
