"""Tests for securedata.core.logos module."""

import httpx
import pytest

from securedata.core.logos import (
    GOOGLE_FAVICON_URL,
    ICON_HORSE_URL,
    KNOWN_LOGOS,
    LogoResolver,
    display_label,
    extract_hostname,
    normalize_website,
    placeholder_url,
)


class TestParsing:
    """Tests for website normalization and hostname extraction."""

    @pytest.mark.parametrize(
        "website,expected",
        [
            ("github.com", "https://github.com"),
            ("http://github.com", "http://github.com"),
            ("https://github.com/login", "https://github.com/login"),
            ("ftp://files.example.com", "ftp://files.example.com"),
        ],
    )
    def test_normalize_website(self, website, expected):
        assert normalize_website(website) == expected

    @pytest.mark.parametrize(
        "website,expected",
        [
            ("github.com", "github.com"),
            ("HTTPS://Mail.Example.COM/inbox?x=1", "mail.example.com"),
            ("example.com:8443", "example.com"),
            ("user@example.org", "example.org"),
        ],
    )
    def test_extract_hostname(self, website, expected):
        assert extract_hostname(website) == expected

    @pytest.mark.parametrize(
        "website",
        ["", "https://", "exa mple.com", "example..com", "example.com:99999", "http://[::1"],
    )
    def test_extract_hostname_rejects_malformed(self, website):
        with pytest.raises(ValueError):
            extract_hostname(website)

    def test_display_label_strips_http_scheme(self):
        assert display_label("https://my bank") == "my bank"
        assert display_label("http://x") == "x"

    def test_placeholder_url_quotes_label(self):
        assert placeholder_url("my bank") == (
            "https://ui-avatars.com/api/?name=my%20bank&background=random&size=128"
        )


class TestStrategies:
    """Each strategy in the chain, on its own."""

    @pytest.mark.asyncio
    async def test_static_table_hit(self, make_resolver):
        resolver = make_resolver()
        url, ok = await resolver.from_static_table("github.com")
        assert ok is True
        assert url == KNOWN_LOGOS["github.com"]

    @pytest.mark.asyncio
    async def test_static_table_miss(self, make_resolver):
        resolver = make_resolver()
        assert await resolver.from_static_table("example.com") == ("", False)

    @pytest.mark.asyncio
    async def test_icon_horse_success(self, make_resolver, make_providers):
        resolver = make_resolver(make_providers(icon_horse=200))
        url, ok = await resolver.from_icon_horse("example.com")
        assert ok is True
        assert url == ICON_HORSE_URL.format(hostname="example.com")

    @pytest.mark.asyncio
    async def test_google_failure_status(self, make_resolver, make_providers):
        resolver = make_resolver(make_providers(google=500))
        url, ok = await resolver.from_google_favicons("example.com")
        assert ok is False
        assert url == GOOGLE_FAVICON_URL.format(hostname="example.com")

    @pytest.mark.asyncio
    async def test_probe_sends_image_accept_header(self, make_resolver, make_providers):
        stub = make_providers(icon_horse=200)
        resolver = make_resolver(stub)
        await resolver.from_icon_horse("example.com")
        assert stub.requests[0].headers["Accept"].startswith("image/webp")


class TestResolve:
    """Tests for the full fallback chain."""

    @pytest.mark.asyncio
    async def test_known_site_makes_no_network_call(self, make_resolver, providers):
        resolver = make_resolver()
        url = await resolver.resolve("github.com")

        assert url == "https://github.githubassets.com/favicons/favicon.svg"
        assert providers.requests == []

    @pytest.mark.asyncio
    async def test_known_site_with_scheme(self, make_resolver, providers):
        resolver = make_resolver()
        assert await resolver.resolve("https://mongodb.com/atlas") == KNOWN_LOGOS["mongodb.com"]
        assert providers.requests == []

    @pytest.mark.asyncio
    async def test_icon_horse_wins_first(self, make_resolver, make_providers):
        stub = make_providers(icon_horse=200, google=200)
        resolver = make_resolver(stub)

        url = await resolver.resolve("example.com")

        assert url == "https://icon.horse/icon/example.com"
        assert [r.url.host for r in stub.requests] == ["icon.horse"]

    @pytest.mark.asyncio
    async def test_falls_back_to_google(self, make_resolver, make_providers):
        stub = make_providers(icon_horse=404, google=200)
        resolver = make_resolver(stub)

        url = await resolver.resolve("example.com")

        assert url == "https://www.google.com/s2/favicons?domain=example.com&sz=128"
        assert [r.url.host for r in stub.requests] == ["icon.horse", "www.google.com"]

    @pytest.mark.asyncio
    async def test_all_providers_fail_gives_placeholder(self, make_resolver):
        resolver = make_resolver()
        url = await resolver.resolve("example.com")
        assert url == placeholder_url("example.com")

    @pytest.mark.asyncio
    async def test_slow_providers_time_out_to_placeholder(self, make_resolver, make_providers):
        stub = make_providers(icon_horse=200, google=200, delay=1.0)
        resolver = make_resolver(stub, timeout=0.05)

        url = await resolver.resolve("slow.example.com")

        assert url == placeholder_url("slow.example.com")
        assert len(stub.requests) == 2

    @pytest.mark.asyncio
    async def test_transport_errors_degrade_to_placeholder(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        resolver = LogoResolver(client=client, timeout=1.0)

        assert await resolver.resolve("down.example.com") == placeholder_url(
            "down.example.com"
        )

    @pytest.mark.asyncio
    async def test_invalid_url_uses_label_placeholder(self, make_resolver, providers):
        resolver = make_resolver()

        url = await resolver.resolve("https://my bank")

        assert url == placeholder_url("my bank")
        assert providers.requests == []

    @pytest.mark.asyncio
    async def test_unexpected_strategy_error_never_escapes(self, make_resolver):
        resolver = make_resolver()

        async def broken(hostname):
            raise RuntimeError("boom")

        resolver.strategies = [broken]

        assert await resolver.resolve("example.com") == placeholder_url("example.com")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "website",
        ["", "   ", "https://", "://", "http://[::1", "a" * 300, "ex ample", "☃.net", "%%%"],
    )
    async def test_resolve_is_total(self, make_resolver, website):
        """Any input yields a non-empty URL without raising."""
        resolver = make_resolver()
        url = await resolver.resolve(website)
        assert isinstance(url, str)
        assert url

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self, make_resolver):
        resolver = make_resolver()
        await resolver.aclose()
        assert resolver.client.is_closed is False
