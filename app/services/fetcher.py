import asyncio
import ipaddress
import logging
import socket
from typing import NamedTuple
from urllib.parse import urljoin, urlparse

import httpx

logger = logging.getLogger(__name__)

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
TIMEOUT = 10  # seconds
MAX_REDIRECTS = 10
ALLOWED_SCHEMES = {"http", "https"}


class FetchResult(NamedTuple):
    html: str
    status_code: int
    final_url: str


async def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address.

    Resolution runs through the event loop so a slow resolver never blocks it.
    """
    try:
        infos = await asyncio.get_running_loop().getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        # Strip IPv6 zone IDs (e.g. "::1%eth0" → "::1")
        raw_ip = info[4][0].split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


async def validate_url(url: str) -> None:
    """Raise ValueError if *url* fails SSRF / scheme validation."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError("URL must have a valid hostname.")

    if await _is_private_address(hostname):
        raise ValueError("Requests to private/internal addresses are not allowed.")


def _declared_length(response: httpx.Response) -> int:
    """Return the Content-Length header as an int (0 when absent)."""
    content_length = response.headers.get("content-length")
    if not content_length:
        return 0
    try:
        return int(content_length)
    except ValueError:
        raise RuntimeError(f"Malformed Content-Length header: {content_length!r}") from None


async def fetch_url(url: str, timeout: float = TIMEOUT) -> FetchResult:
    """Fetch *url* and return its body, status code and post-redirect URL.

    Redirects are followed manually so that every redirect destination is
    validated against the SSRF rules before the next request is made.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        httpx.HTTPError: on network or HTTP errors.
        RuntimeError: if the response body exceeds MAX_CONTENT_SIZE or declares
            a malformed Content-Length.
    """
    await validate_url(url)

    current_url = url
    async with httpx.AsyncClient(follow_redirects=False, timeout=timeout) as client:
        for _ in range(MAX_REDIRECTS + 1):
            async with client.stream("GET", current_url) as response:
                if response.is_redirect:
                    location = response.headers.get("location", "")
                    next_url = urljoin(current_url, location)
                    await validate_url(next_url)
                    current_url = next_url
                    continue

                response.raise_for_status()

                if _declared_length(response) > MAX_CONTENT_SIZE:
                    raise RuntimeError("Response body exceeds the maximum allowed size.")

                chunks = []
                total = 0
                async for chunk in response.aiter_bytes():
                    total += len(chunk)
                    if total > MAX_CONTENT_SIZE:
                        raise RuntimeError("Response body exceeds the maximum allowed size.")
                    chunks.append(chunk)

                return FetchResult(
                    html=b"".join(chunks).decode(errors="replace"),
                    status_code=response.status_code,
                    final_url=current_url,
                )

    raise RuntimeError("Too many redirects.")


async def resolve_final_url(url: str, timeout: float = TIMEOUT) -> str:
    """Follow redirects from *url* without downloading bodies; return where they end.

    Any failure (blocked address, network error, redirect loop) resolves to the
    last URL reached, so callers can always proceed with *some* URL.
    """
    current_url = url
    try:
        await validate_url(url)
        async with httpx.AsyncClient(follow_redirects=False, timeout=timeout) as client:
            for _ in range(MAX_REDIRECTS + 1):
                async with client.stream("GET", current_url) as response:
                    if not response.is_redirect:
                        return current_url
                    next_url = urljoin(current_url, response.headers.get("location", ""))
                    await validate_url(next_url)
                    current_url = next_url
    except (ValueError, httpx.HTTPError) as exc:
        logger.info("Could not resolve redirects for %s – %s", url, exc)
    return current_url
