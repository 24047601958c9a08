from __future__ import annotations

from typing import Optional

import httpx

from richard import __version__
from richard.liveness import ProbeError, ProbeStatusError, ProbeTransportError

DEFAULT_TIMEOUT_SECONDS = 10.0
USER_AGENT = f"richard/{__version__}"


def request_agent(
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    headers: Optional[dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """HTTP client used by every adapter: bounded timeout, bot User-Agent."""
    merged = {"User-Agent": USER_AGENT}
    merged.update(headers or {})
    return httpx.AsyncClient(timeout=timeout, headers=merged, transport=transport, follow_redirects=True)


async def probe_url(client: httpx.AsyncClient, url: str, *, method: str = "GET") -> Optional[ProbeError]:
    """Hit ``url`` once. Returns None on HTTP 200, the failure otherwise."""
    try:
        resp = await client.request(method, url)
    except httpx.HTTPError as e:
        return ProbeTransportError(f"{type(e).__name__}: {e}")
    if resp.status_code != 200:
        return ProbeStatusError(resp.status_code)
    return None


def redact(text: str, secret: Optional[str]) -> str:
    if secret:
        return text.replace(secret, "<redacted>")
    return text
