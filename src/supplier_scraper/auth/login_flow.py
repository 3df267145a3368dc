"""Login orchestration for the legacy booking application."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urljoin

import httpx

from supplier_scraper.auth.session_store import (
    Credentials,
    Session,
    SessionStore,
    expiry_from_record,
)
from supplier_scraper.config.settings import Settings
from supplier_scraper.core.errors import AuthError, AuthFailure, NotLoggedInError
from supplier_scraper.core.http import FORM_CONTENT_TYPE, CookieJar
from supplier_scraper.core.logging import mask
from supplier_scraper.selectors.login_page import LoginSelectors, login_control_key
from supplier_scraper.storage.response_dump import ResponseDump

logger = logging.getLogger(__name__)

_MAX_REDIRECT_HOPS = 5


class LoginFlow:
    """Encapsulates login logic and session persistence for one logical user.

    The flow owns the cookie jar that every later request replays; instances
    must not be shared between concurrent callers.
    """

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient,
        *,
        credentials: Optional[Credentials] = None,
        jar: Optional[CookieJar] = None,
        store: Optional[SessionStore] = None,
        dump: Optional[ResponseDump] = None,
    ) -> None:
        self.settings = settings
        self.http = http
        self.credentials = credentials
        self.jar = jar if jar is not None else CookieJar()
        self.store = store
        self.dump = dump
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def is_logged_in(self) -> bool:
        return self._session is not None

    def require_session(self) -> Session:
        if self._session is None:
            raise NotLoggedInError("Not logged in; call ensure_logged_in() first")
        return self._session

    async def ensure_logged_in(self) -> Session:
        """Log in unless this instance already holds a session."""
        if self._session is not None:
            return self._session
        return await self.login()

    async def login(self, credentials: Optional[Credentials] = None) -> Session:
        """Restore a persisted session or perform the full postback login.

        Raises :class:`AuthError` on any login failure.
        """
        credentials = credentials or self.credentials
        if credentials is None:
            raise RuntimeError("Credentials must be supplied for login")
        self.credentials = credentials

        restored = self._restore(credentials)
        if restored is not None:
            logger.info("Session restored for %s", mask(credentials.username))
            return restored

        tokens = await self._fetch_login_tokens()
        form = self._build_login_form(credentials, tokens)

        logger.info("Submitting credentials for user %s", mask(credentials.username))
        response = await self.http.post(
            self.settings.login_url,
            data=form,
            headers={
                "Cookie": self.jar.header(),
                "Content-Type": FORM_CONTENT_TYPE,
                "Origin": self.settings.login_base_url,
                "Referer": self.settings.login_url,
            },
        )
        if not (response.is_success or response.is_redirect):
            response.raise_for_status()
        self.jar.update_from_response(response)
        await self._dump("login", response.text)

        location = response.headers.get("location", "")
        if response.is_redirect and self.settings.post_login_domain in location:
            await self._follow_redirect(urljoin(self.settings.login_url, location))
            return self._establish(credentials)

        if any(marker in response.text for marker in LoginSelectors.failure_markers):
            raise AuthError(AuthFailure.INVALID_CREDENTIALS, "Invalid credentials")
        if response.is_redirect:
            logger.error("Login redirected to unexpected location %s", location or "<none>")
        raise AuthError(AuthFailure.UNKNOWN, f"Login failed - unexpected response ({response.status_code})")

    def logout(self) -> None:
        """Forget the in-memory session and its persisted record; safe to repeat."""
        identity = None
        if self._session is not None:
            identity = self._session.identity
        elif self.credentials is not None:
            identity = self.credentials.identity
        self._session = None
        self.jar.clear()
        if self.store is not None and identity:
            self.store.delete(identity)

    def _restore(self, credentials: Credentials) -> Optional[Session]:
        if self.store is None:
            return None
        record = self.store.load_record(credentials.identity)
        if record is None:
            return None
        try:
            session = Session.from_payload(record["data"], expires_at=expiry_from_record(record))
        except (KeyError, TypeError, ValueError):
            logger.warning("Stored session for %s is malformed; logging in again", mask(credentials.username))
            self.store.delete(credentials.identity)
            return None
        self.jar.clear()
        self.jar.set_cookies(f"{name}={value}" for name, value in session.cookies.items())
        self._session = session
        return session

    async def _fetch_login_tokens(self) -> dict[str, str]:
        response = await self.http.get(self.settings.login_url)
        response.raise_for_status()
        self.jar.update_from_response(response)
        html = response.text
        patterns = {
            "__VIEWSTATE": LoginSelectors.view_state_pattern,
            "__VIEWSTATEGENERATOR": LoginSelectors.view_state_generator_pattern,
            "__EVENTVALIDATION": LoginSelectors.event_validation_pattern,
        }
        tokens: dict[str, str] = {}
        for name, pattern in patterns.items():
            match = pattern.search(html)
            if not match:
                await self._dump("login_page", html)
                raise AuthError(
                    AuthFailure.PROTOCOL_SHAPE_CHANGED,
                    f"Failed to extract {name} from login page",
                )
            tokens[name] = match.group(1)
        return tokens

    def _build_login_form(self, credentials: Credentials, tokens: dict[str, str]) -> dict[str, str]:
        form = LoginSelectors.bookkeeping_fields()
        form.update(tokens)
        form[login_control_key("Arc")] = credentials.tenant_id
        form[login_control_key("UserName")] = credentials.username
        form[login_control_key("Password")] = credentials.password
        return form

    async def _follow_redirect(self, url: str) -> None:
        # The application origin sets its own session cookie on this hop; each
        # hop is issued by hand so the jar sees every Set-Cookie header.
        referer = self.settings.login_url
        try:
            for _ in range(_MAX_REDIRECT_HOPS):
                response = await self.http.get(url, headers={"Cookie": self.jar.header(), "Referer": referer})
                self.jar.update_from_response(response)
                location = response.headers.get("location")
                if not (response.is_redirect and location):
                    break
                referer, url = url, urljoin(url, location)
            logger.info("Session established on application domain")
        except httpx.HTTPError as exc:
            logger.warning("Failed to follow post-login redirect, continuing: %s", exc)

    def _establish(self, credentials: Credentials) -> Session:
        now = datetime.now(timezone.utc)
        session = Session(
            cookies=self.jar.as_dict(),
            tenant_id=credentials.tenant_id,
            username=credentials.username,
            login_time=now,
            expires_at=now + timedelta(seconds=self.settings.session_ttl_seconds),
        )
        if self.store is not None:
            self.store.save(session.identity, session.to_payload(), self.settings.session_ttl_seconds)
        self._session = session
        return session

    async def _dump(self, label: str, body: str) -> None:
        if self.dump is not None:
            await self.dump.write(label, body)
