from __future__ import annotations

import httpx

from supplier_scraper.core.http import CookieJar, build_http_client
from supplier_scraper.core.logging import mask


def test_cookie_jar_merges_set_cookie_headers():
    jar = CookieJar()
    jar.set_cookies(
        [
            "ASP.NET_SessionId=abc; path=/; HttpOnly",
            ".ASPXAUTH=token; domain=.vaxvacationaccess.com; secure",
        ]
    )
    assert jar.as_dict()["ASP.NET_SessionId"] == "abc"
    assert jar.header() == "ASP.NET_SessionId=abc; .ASPXAUTH=token"

    jar.set_cookies(["ASP.NET_SessionId=def; path=/"])
    assert jar.as_dict()["ASP.NET_SessionId"] == "def"
    assert len(jar) == 2


def test_cookie_jar_drops_cleared_cookies_and_ignores_garbage():
    jar = CookieJar({"a": "1", "b": "2"})
    jar.set_cookies(["a=; expires=Thu, 01 Jan 1970 00:00:00 GMT", "novalue", "=x"])
    assert "a" not in jar.as_dict()
    assert jar.as_dict() == {"b": "2"}


def test_cookie_jar_reads_every_set_cookie_header():
    response = httpx.Response(
        200,
        headers=[("set-cookie", "one=1; path=/"), ("set-cookie", "two=2; path=/")],
        request=httpx.Request("GET", "https://example.test/"),
    )
    jar = CookieJar()
    jar.update_from_response(response)
    assert jar.as_dict() == {"one": "1", "two": "2"}


def test_http_client_never_follows_redirects():
    client = build_http_client(user_agent="agent/1.0", timeout=5)
    assert client.follow_redirects is False
    assert client.headers["User-Agent"] == "agent/1.0"


def test_mask_hides_identifier():
    assert mask("agent007") == "ag******"
    assert mask(None) == "<unset>"
