"""Raw byte access: local files and HTTP(S) URLs.

Both return the exact bytes found; nothing is decoded or transformed.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from spotpatch.errors import NetworkError, SourceIOError

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("http", "https")


def read_file(path: Path) -> bytes:
    """Read a whole file.

    Raises:
        SourceIOError: If the path is missing, a directory or unreadable
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SourceIOError(
            f"cannot read file: {e.strerror or e}", target=str(path)
        ) from e
    logger.debug(f"Read {len(data)} bytes from {path}")
    return data


def parse_url(url: str) -> httpx.URL:
    """Parse and check an http(s) URL.

    Raises:
        NetworkError: If the URL is malformed or not http/https
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise NetworkError(f"invalid URL: {e}", target=url) from e
    if parsed.scheme not in SUPPORTED_SCHEMES or not parsed.host:
        raise NetworkError(
            "only absolute http:// and https:// URLs are supported", target=url
        )
    return parsed


def normalize_url(url: str) -> str:
    """Canonical form of a URL for cycle detection.

    Scheme and host are lower-cased, default ports and the fragment dropped.
    """
    return str(parse_url(url)).split("#", 1)[0]


def fetch_url(
    url: str,
    *,
    timeout: float = 30.0,
    user_agent: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> bytes:
    """GET a URL and return the response body.

    Args:
        url: Absolute http(s) URL
        timeout: Seconds before connect/read give up
        user_agent: User-Agent header value
        transport: Alternate httpx transport (tests use httpx.MockTransport)

    Raises:
        NetworkError: On connection failure or any non-2xx status
    """
    parsed = parse_url(url)
    headers = {"User-Agent": user_agent} if user_agent else None

    try:
        with httpx.Client(
            transport=transport,
            timeout=timeout,
            follow_redirects=True,
            headers=headers,
        ) as client:
            response = client.get(parsed)
    except httpx.HTTPError as e:
        raise NetworkError(f"request failed: {e}", target=url) from e

    if not response.is_success:
        raise NetworkError(
            f"server returned HTTP {response.status_code}",
            target=url,
            status_code=response.status_code,
        )

    logger.debug(f"Fetched {len(response.content)} bytes from {url}")
    return response.content
