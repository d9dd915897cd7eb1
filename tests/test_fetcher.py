"""Tests for funnelscout.services.fetcher."""

import socket
from unittest.mock import patch

import httpx
import pytest

from funnelscout.services.fetcher import ensure_public_url, fetch_bytes

_PUBLIC = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("93.184.216.34", 0))]
_PRIVATE = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.0.0.7", 0))]


def _resolve(mapping):
    """Fake getaddrinfo answering from *mapping* (hostname -> addrinfo list)."""

    def getaddrinfo(host, *args, **kwargs):
        return mapping.get(host, _PUBLIC)

    return patch("funnelscout.services.fetcher.socket.getaddrinfo", side_effect=getaddrinfo)


# ---------------------------------------------------------------------------
# URL checks
# ---------------------------------------------------------------------------

class TestEnsurePublicUrl:
    def test_public_host(self):
        with _resolve({}):
            ensure_public_url("https://acme.com/sitemap.xml")

    @pytest.mark.parametrize("url", ["ftp://acme.com/sitemap.xml", "file:///etc/passwd"])
    def test_other_schemes_rejected(self, url):
        with pytest.raises(ValueError):
            ensure_public_url(url)

    def test_missing_hostname(self):
        with pytest.raises(ValueError):
            ensure_public_url("https:///sitemap.xml")

    def test_private_address_rejected(self):
        with _resolve({"intranet.acme.com": _PRIVATE}):
            with pytest.raises(ValueError, match="private"):
                ensure_public_url("https://intranet.acme.com/")

    def test_loopback_literal_rejected(self):
        with pytest.raises(ValueError):
            ensure_public_url("http://127.0.0.1/sitemap.xml")

    def test_unresolvable_host_is_left_to_the_request(self):
        with patch(
            "funnelscout.services.fetcher.socket.getaddrinfo",
            side_effect=socket.gaierror("Name or service not known"),
        ):
            ensure_public_url("https://nowhere.invalid/")


# ---------------------------------------------------------------------------
# fetch_bytes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
class TestFetchBytes:
    async def test_returns_raw_body(self):
        body = b'<?xml version="1.0" encoding="ISO-8859-1"?><urlset>\xe9</urlset>'
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=body))
        with _resolve({}):
            assert await fetch_bytes("https://acme.com/sitemap.xml", transport=transport) == body

    async def test_sends_user_agent(self):
        seen = []

        def handler(request):
            seen.append(request.headers["user-agent"])
            return httpx.Response(200, content=b"<urlset/>")

        with _resolve({}):
            await fetch_bytes("https://acme.com/sitemap.xml", transport=httpx.MockTransport(handler))
        assert seen == ["FunnelScout/1.0"]

    async def test_follows_public_redirect(self):
        def handler(request):
            if request.url.path == "/sitemap.xml":
                return httpx.Response(301, headers={"location": "/sitemap_index.xml"})
            return httpx.Response(200, content=b"<sitemapindex/>")

        with _resolve({}):
            body = await fetch_bytes(
                "https://acme.com/sitemap.xml", transport=httpx.MockTransport(handler)
            )
        assert body == b"<sitemapindex/>"

    async def test_redirect_to_private_host_is_refused(self):
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(302, headers={"location": "http://intranet.acme.com/sitemap.xml"})

        with _resolve({"intranet.acme.com": _PRIVATE}):
            with pytest.raises(ValueError):
                await fetch_bytes("https://acme.com/sitemap.xml", transport=httpx.MockTransport(handler))
        assert requested == ["https://acme.com/sitemap.xml"]

    async def test_redirect_loop(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(302, headers={"location": "/sitemap.xml"})
        )
        with _resolve({}):
            with pytest.raises(RuntimeError):
                await fetch_bytes("https://acme.com/sitemap.xml", transport=transport)

    async def test_error_status(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404, content=b"Not found"))
        with _resolve({}):
            with pytest.raises(httpx.HTTPStatusError):
                await fetch_bytes("https://acme.com/sitemap.xml", transport=transport)

    async def test_body_size_cap(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"x" * 64))
        with _resolve({}), patch("funnelscout.services.fetcher.MAX_BODY_BYTES", 16):
            with pytest.raises(RuntimeError):
                await fetch_bytes("https://acme.com/sitemap.xml", transport=transport)
