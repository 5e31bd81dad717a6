"""Website logo resolution.

A website string is mapped to a logo URL by walking an ordered chain of
strategies; the first one that reports success wins:

1. a static table of known brands (no network),
2. icon.horse, keyed by hostname in the path,
3. Google's favicon service, keyed by hostname in the query,
4. a ui-avatars text placeholder built from the hostname.

Each strategy is an async callable ``hostname -> (url, ok)``. Provider
strategies only check that the provider answers with a 2xx status; the image
itself is never downloaded into the service. ``LogoResolver.resolve`` never
raises.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from urllib.parse import quote, urlsplit

import httpx

from securedata.core.config import LOGO_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

Strategy = Callable[[str], Awaitable[tuple[str, bool]]]

KNOWN_LOGOS: Mapping[str, str] = MappingProxyType(
    {
        "github.com": "https://github.githubassets.com/favicons/favicon.svg",
        "mongodb.com": "https://www.mongodb.com/assets/images/global/favicon.ico",
    }
)

ICON_HORSE_URL = "https://icon.horse/icon/{hostname}"
GOOGLE_FAVICON_URL = "https://www.google.com/s2/favicons?domain={hostname}&sz=128"
PLACEHOLDER_URL = "https://ui-avatars.com/api/?name={name}&background=random&size=128"

IMAGE_ACCEPT = "image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8"

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_HTTP_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_HOSTNAME_RE = re.compile(r"^[\w-]+(\.[\w-]+)*\.?$")


def normalize_website(website: str) -> str:
    """Prefix https:// when the input carries no scheme."""
    website = website.strip()
    if _SCHEME_RE.match(website):
        return website
    return f"https://{website}"


def extract_hostname(website: str) -> str:
    """
    Parse a website string and return its lower-cased hostname.

    Raises:
        ValueError: If the string does not parse as a URL with a usable host
    """
    parts = urlsplit(normalize_website(website))
    hostname = parts.hostname
    # raises ValueError on a malformed port
    _ = parts.port
    if not hostname:
        raise ValueError(f"No hostname in {website!r}")
    if not _HOSTNAME_RE.match(hostname) and not _is_ip_literal(hostname):
        raise ValueError(f"Invalid hostname {hostname!r}")
    return hostname


def _is_ip_literal(hostname: str) -> bool:
    return ":" in hostname and all(
        c in "0123456789abcdef:." for c in hostname.lower()
    )


def display_label(website: str) -> str:
    """Input with any leading http(s):// removed."""
    return _HTTP_SCHEME_RE.sub("", website.strip())


def placeholder_url(label: str) -> str:
    """Deterministic text-avatar URL for a label."""
    return PLACEHOLDER_URL.format(name=quote(label, safe=""))


class LogoResolver:
    """Resolves best-effort brand logos for websites."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        known_logos: Mapping[str, str] | None = None,
    ):
        """
        Initialize logo resolver.

        Args:
            client: HTTP client for provider probes (created lazily if None)
            timeout: Seconds allowed per provider call
            known_logos: Static hostname -> logo URL overrides
        """
        self.timeout = LOGO_TIMEOUT_SECONDS if timeout is None else timeout
        self.known_logos = KNOWN_LOGOS if known_logos is None else known_logos
        self._client = client
        self._owns_client = client is None
        self.strategies: list[Strategy] = [
            self.from_static_table,
            self.from_icon_horse,
            self.from_google_favicons,
        ]

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this resolver created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def resolve(self, website: str) -> str:
        """
        Resolve a logo URL for a website.

        Args:
            website: Raw website string as entered by the user

        Returns:
            A non-empty logo URL; a text-avatar placeholder when nothing else works
        """
        try:
            try:
                hostname = extract_hostname(website)
            except ValueError:
                label = display_label(website)
                logger.info("Invalid URL, using text-based logo for: %s", label)
                return placeholder_url(label)

            for strategy in self.strategies:
                url, ok = await strategy(hostname)
                if ok:
                    return url

            logger.info("No favicon found, using text-based logo for: %s", hostname)
            return placeholder_url(hostname)
        except Exception:
            logger.exception("Logo resolution failed for %r", website)
            return placeholder_url(display_label(website))

    async def from_static_table(self, hostname: str) -> tuple[str, bool]:
        url = self.known_logos.get(hostname, "")
        if url:
            logger.debug("Using predefined logo for %s", hostname)
        return url, bool(url)

    async def from_icon_horse(self, hostname: str) -> tuple[str, bool]:
        url = ICON_HORSE_URL.format(hostname=hostname)
        return url, await self._probe(url, hostname, "icon.horse")

    async def from_google_favicons(self, hostname: str) -> tuple[str, bool]:
        url = GOOGLE_FAVICON_URL.format(hostname=hostname)
        return url, await self._probe(url, hostname, "Google favicons")

    async def _probe(self, url: str, hostname: str, provider: str) -> bool:
        """Return True if the provider answers with a success status in time."""
        logger.debug("Trying %s for %s", provider, hostname)
        try:
            request = self.client.build_request(
                "GET", url, headers={"Accept": IMAGE_ACCEPT}
            )
            response = await asyncio.wait_for(
                self.client.send(request, stream=True), timeout=self.timeout
            )
            await response.aclose()
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            logger.debug("%s failed for %s: %s", provider, hostname, exc)
            return False

        if response.is_success:
            logger.info("Fetched logo from %s for %s", provider, hostname)
            return True

        logger.debug(
            "%s returned %s for %s", provider, response.status_code, hostname
        )
        return False
