"""URL normalization and public-target checks."""

import asyncio
import ipaddress
import re
import socket
from urllib.parse import urlparse, urlunparse

from aeo_audit.errors import InputValidationError

ALLOWED_SCHEMES = ("http", "https")

# "mailto:x" has a scheme, "example.com:8080" does not
_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):(?!\d)")

_BLOCKED_HOST_SUFFIXES = (".localhost", ".local", ".internal")


def is_public_ip(ip: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    """Return False for private, loopback, link-local and other non-routable addresses."""
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped:
        ip = ip.ipv4_mapped
    return not (
        ip.is_private
        or ip.is_loopback
        or ip.is_reserved
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_unspecified
    )


def parse_ip_literal(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    """Parse a host that is an IP literal, including the decimal-integer form."""
    try:
        if host.isdigit():
            return ipaddress.ip_address(int(host))
        return ipaddress.ip_address(host)
    except ValueError:
        return None


def check_host(host: str) -> None:
    """
    Reject hosts that can never be public.

    Raises:
        InputValidationError: For localhost names and non-public IP literals
    """
    if host == "localhost" or host.endswith(_BLOCKED_HOST_SUFFIXES):
        raise InputValidationError(f"Host is not publicly routable: {host}")
    ip = parse_ip_literal(host)
    if ip is not None and not is_public_ip(ip):
        raise InputValidationError(f"Host is not publicly routable: {host}")


def normalize_url(raw: str) -> str:
    """
    Canonicalize a user-supplied URL.

    Adds https:// when no scheme is given, lowercases scheme and host,
    defaults the path to "/", keeps the query and drops the fragment.

    Args:
        raw: URL as typed by the user

    Returns:
        Canonical absolute URL

    Raises:
        InputValidationError: For empty input, non-http(s) schemes, missing
            or non-public hosts, and invalid ports
    """
    value = (raw or "").strip()
    if not value:
        raise InputValidationError("URL is required")

    match = _SCHEME_RE.match(value)
    if match is None:
        value = f"https://{value}"
    elif match.group(1).lower() not in ALLOWED_SCHEMES:
        raise InputValidationError(f"Unsupported URL scheme: {match.group(1)}")

    parsed = urlparse(value)
    scheme = parsed.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InputValidationError(f"Unsupported URL scheme: {parsed.scheme}")

    host = (parsed.hostname or "").lower().rstrip(".")
    if not host:
        raise InputValidationError(f"URL has no host: {raw}")
    if any(char.isspace() for char in host):
        raise InputValidationError(f"Invalid host: {host}")

    try:
        port = parsed.port
    except ValueError as e:
        raise InputValidationError(f"Invalid port in URL: {raw}") from e

    check_host(host)

    netloc = f"[{host}]" if ":" in host else host
    if port is not None:
        netloc = f"{netloc}:{port}"

    return urlunparse((scheme, netloc, parsed.path or "/", "", parsed.query, ""))


def origin_of(url: str) -> str:
    """Return scheme://host[:port] for an absolute URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


async def ensure_public_url(url: str, check_dns: bool = True) -> None:
    """
    Reject a URL that is, or resolves to, a non-public address.

    Args:
        url: Absolute URL about to be requested
        check_dns: Also resolve the host and check every address

    Raises:
        InputValidationError: For non-http(s) schemes, missing or blocked
            hosts, unresolvable names and names resolving to private ranges
    """
    parsed = urlparse(url)
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InputValidationError(f"Unsupported URL scheme: {parsed.scheme}")
    host = (parsed.hostname or "").lower()
    if not host:
        raise InputValidationError(f"URL has no host: {url}")
    check_host(host)

    if not check_dns or parse_ip_literal(host) is not None:
        return

    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise InputValidationError(f"DNS resolution failed for {host}") from e

    for *_, sockaddr in infos:
        ip = parse_ip_literal(sockaddr[0].split("%")[0])
        if ip is None or not is_public_ip(ip):
            raise InputValidationError(f"{host} resolves to a non-public address")
