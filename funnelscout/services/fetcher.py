"""Outbound requests for auxiliary site files, restricted to public hosts.

The only file fetched this way is ``sitemap.xml``.  Bodies come back as raw
bytes so the XML parser can honour the document's own encoding declaration.
"""

import ipaddress
import socket
from typing import Iterator, Optional, Union
from urllib.parse import urljoin, urlparse

import httpx

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

MAX_BODY_BYTES = 2 * 1024 * 1024
DEFAULT_TIMEOUT = 10  # seconds
MAX_HOPS = 3
USER_AGENT = "FunnelScout/1.0"


def _resolved_addresses(hostname: str) -> Iterator[IPAddress]:
    try:
        infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror:
        return
    for *_, sockaddr in infos:
        # "fe80::1%eth0" carries a zone id that ip_address() rejects
        host = str(sockaddr[0]).partition("%")[0]
        try:
            yield ipaddress.ip_address(host)
        except ValueError:
            continue


def _is_internal(address: IPAddress) -> bool:
    return address.is_private or address.is_loopback or address.is_link_local or address.is_reserved


def ensure_public_url(url: str) -> None:
    """Raise ValueError unless *url* is http(s) and its host resolves to public addresses only."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Only http and https URLs can be analysed, got '{parsed.scheme}'.")
    if not parsed.hostname:
        raise ValueError("URL has no hostname.")
    if any(_is_internal(address) for address in _resolved_addresses(parsed.hostname)):
        raise ValueError("Requests to private/internal addresses are not allowed.")


async def _read_capped(response: httpx.Response) -> bytes:
    body = bytearray()
    async for chunk in response.aiter_bytes():
        body.extend(chunk)
        if len(body) > MAX_BODY_BYTES:
            raise RuntimeError(f"{response.url} is larger than {MAX_BODY_BYTES} bytes.")
    return bytes(body)


async def fetch_bytes(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bytes:
    """GET *url* once, without retries, and return the raw body.

    Redirects are followed by hand so every hop is checked with
    :func:`ensure_public_url` before it is requested.

    Raises:
        ValueError: if the URL or a redirect target is not a public http(s) URL.
        httpx.HTTPError: on network errors, timeouts and non-success statuses.
        RuntimeError: if the body is too large or there are too many redirects.
    """
    ensure_public_url(url)
    headers = {"User-Agent": USER_AGENT}
    async with httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport) as client:
        for _ in range(MAX_HOPS + 1):
            async with client.stream("GET", url) as response:
                if not response.is_redirect:
                    response.raise_for_status()
                    return await _read_capped(response)
                url = urljoin(url, response.headers["location"])
            ensure_public_url(url)
    raise RuntimeError(f"Gave up after {MAX_HOPS} redirects.")
