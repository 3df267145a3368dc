"""HTTP transport helpers shared by the login flow and the search client."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

BROWSER_HEADERS: Dict[str, str] = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,"
        "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Upgrade-Insecure-Requests": "1",
}

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class CookieJar:
    """Name/value cookie store replayed through an explicit ``Cookie`` header.

    The login and application hosts are distinct origins, so cookies are kept
    without domain scoping and sent to both.
    """

    def __init__(self, cookies: Optional[Mapping[str, str]] = None) -> None:
        self._cookies: Dict[str, str] = dict(cookies or {})

    def __len__(self) -> int:
        return len(self._cookies)

    def set_cookies(self, set_cookie_headers: Iterable[str]) -> None:
        for header in set_cookie_headers:
            pair = header.split(";", 1)[0]
            name, sep, value = pair.partition("=")
            name = name.strip()
            if not name or not sep:
                continue
            value = value.strip()
            if value:
                self._cookies[name] = value
            else:
                self._cookies.pop(name, None)

    def update_from_response(self, response: httpx.Response) -> None:
        headers = response.headers.get_list("set-cookie")
        if headers:
            logger.debug("Captured %s cookie(s) from %s", len(headers), response.url)
            self.set_cookies(headers)

    def header(self) -> str:
        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())

    def as_dict(self) -> Dict[str, str]:
        return dict(self._cookies)

    def clear(self) -> None:
        self._cookies.clear()


def build_http_client(
    *,
    user_agent: str,
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the async client used for all upstream traffic.

    Redirects are never followed automatically; callers decide per request.
    """
    default_headers = dict(BROWSER_HEADERS)
    default_headers["User-Agent"] = user_agent
    if headers:
        default_headers.update(headers)
    return httpx.AsyncClient(
        timeout=timeout,
        headers=default_headers,
        follow_redirects=False,
        transport=transport,
    )
