"""
Unit tests for URL normalization and public-target checks.
"""

import asyncio
import ipaddress
import socket

import pytest

from aeo_audit.errors import InputValidationError
from aeo_audit.urls import check_host, ensure_public_url, is_public_ip, normalize_url, origin_of


class TestNormalizeUrl:
    """Canonical URL form."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("example.com", "https://example.com/"),
            ("  example.com/page  ", "https://example.com/page"),
            ("HTTP://Example.COM/Path", "http://example.com/Path"),
            ("https://example.com/a?b=1#section", "https://example.com/a?b=1"),
            ("example.com:8443/x", "https://example.com:8443/x"),
            ("https://example.com.", "https://example.com/"),
        ],
    )
    def test_canonical_form(self, raw, expected):
        assert normalize_url(raw) == expected

    def test_is_idempotent(self):
        once = normalize_url("Example.com/docs?q=1")
        assert normalize_url(once) == once

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_input_rejected(self, raw):
        with pytest.raises(InputValidationError, match="required"):
            normalize_url(raw)

    @pytest.mark.parametrize(
        "raw", ["ftp://example.com/file", "javascript:alert(1)", "file:///etc/passwd", "mailto:a@b.c"]
    )
    def test_unsupported_schemes_rejected(self, raw):
        with pytest.raises(InputValidationError, match="scheme"):
            normalize_url(raw)

    @pytest.mark.parametrize(
        "raw",
        [
            "http://localhost/",
            "localhost:8080",
            "http://app.localhost/",
            "http://printer.local/",
            "http://service.internal/",
            "http://127.0.0.1/",
            "http://10.0.0.5/admin",
            "http://192.168.1.1/",
            "http://169.254.169.254/latest/meta-data",
            "http://[::1]/",
            "http://2130706433/",
        ],
    )
    def test_non_public_hosts_rejected(self, raw):
        with pytest.raises(InputValidationError, match="publicly routable"):
            normalize_url(raw)

    def test_invalid_port_rejected(self):
        with pytest.raises(InputValidationError, match="port"):
            normalize_url("https://example.com:99999/")

    def test_missing_host_rejected(self):
        with pytest.raises(InputValidationError, match="no host"):
            normalize_url("https:///path")


class TestHostChecks:
    def test_public_ip(self):
        assert is_public_ip(ipaddress.ip_address("93.184.216.34"))
        assert not is_public_ip(ipaddress.ip_address("172.16.0.1"))

    def test_ipv4_mapped_ipv6_is_unwrapped(self):
        assert not is_public_ip(ipaddress.ip_address("::ffff:127.0.0.1"))

    def test_public_hostname_passes(self):
        check_host("example.com")

    def test_origin_of(self):
        assert origin_of("https://example.com:8443/a/b?c=1") == "https://example.com:8443"


class TestEnsurePublicUrl:
    """Per-request guard shared by the fetcher and the browser."""

    @pytest.mark.asyncio
    async def test_public_literal_passes(self):
        await ensure_public_url("https://93.184.216.34/page", check_dns=False)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url",
        [
            "http://169.254.169.254/latest/meta-data",
            "http://10.0.0.8/",
            "http://localhost/",
            "file:///etc/passwd",
            "https:///nohost",
        ],
    )
    async def test_non_public_targets_rejected(self, url):
        with pytest.raises(InputValidationError):
            await ensure_public_url(url, check_dns=False)

    @pytest.mark.asyncio
    async def test_name_resolving_to_private_address_rejected(self, monkeypatch):
        loop = asyncio.get_running_loop()

        async def fake_getaddrinfo(host, port, **kwargs):
            return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.168.1.10", 0))]

        monkeypatch.setattr(loop, "getaddrinfo", fake_getaddrinfo)

        with pytest.raises(InputValidationError, match="non-public"):
            await ensure_public_url("https://intranet.example.com/")
