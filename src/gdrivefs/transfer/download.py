"""Streaming downloads with manual redirect and cookie handling."""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from http.cookiejar import DefaultCookiePolicy
from typing import Any, Callable, Optional
from urllib.parse import quote, urljoin, urlparse

import requests

from gdrivefs.config import AdapterOptions
from gdrivefs.errors import (
    AuthError,
    HttpErrorInfo,
    NetworkError,
    TooManyRedirectsError,
    map_http_error,
)
from gdrivefs.models import RemoteObject
from gdrivefs.util.mime import export_mime_for, is_google_app

logger = logging.getLogger(__name__)

DRIVE_FILES_URL: str = "https://www.googleapis.com/drive/v3/files"

_COOKIE_DOMAIN_RE = re.compile(r"domain=\s*([^ ;]+)", re.IGNORECASE)


@dataclass
class RedirectContext:
    """State carried across the hops of one logical download."""

    url: str
    token: str = ""
    hops: int = 0
    cookies: dict[str, dict[str, str]] = field(default_factory=dict)

    def cookie_header(self, host: str) -> str:
        """Cookies of every recorded domain that is a substring of host."""
        pairs = []
        for domain, jar in self.cookies.items():
            if domain in host:
                pairs.extend(f"{name}={value}" for name, value in jar.items())
        return "; ".join(pairs)

    def record_cookie(self, set_cookie: str, host: str) -> None:
        pair = set_cookie.split(";", 1)[0].strip()
        if "=" not in pair:
            return
        name, value = pair.split("=", 1)
        name = name.strip()
        if not name:
            return

        m = _COOKIE_DOMAIN_RE.search(set_cookie)
        domain = m.group(1).strip().lstrip(".") if m else host
        self.cookies.setdefault(domain, {})[name] = value.strip()


class ContentStream(io.RawIOBase):
    """
    Live, unbuffered body of a download response.

    The caller owns the stream and must close it; closing releases the
    underlying connection.
    """

    def __init__(self, response: Any, session: Any = None) -> None:
        super().__init__()
        self._response = response
        self._raw = response.raw
        self._session = session
        self.status_code = response.status_code
        self.headers = response.headers

    def readable(self) -> bool:
        return True

    def readinto(self, b: Any) -> int:
        data = self._raw.read(len(b))
        n = len(data)
        b[:n] = data
        return n

    def close(self) -> None:
        if not self.closed:
            self._response.close()
            if self._session is not None:
                self._session.close()
        super().close()


class DownloadStreamer:
    """
    Open Drive content as a byte stream.

    Redirects are followed by hand so that the bearer token and cookies set
    by intermediate hosts travel with every hop; at most `max_redirect_hops`
    requests are made per download.
    """

    def __init__(
        self,
        credentials: Any,
        options: Optional[AdapterOptions] = None,
        *,
        session_factory: Callable[[], Any] = requests.Session,
    ) -> None:
        self._credentials = credentials
        self._options = options or AdapterOptions()
        self._session_factory = session_factory

    def download_url(self, obj: RemoteObject) -> str:
        """Binary-content URL, or export URL for native Google documents."""
        if not is_google_app(obj.mime_type):
            return f"{DRIVE_FILES_URL}/{obj.object_id}?alt=media"
        export_mime = export_mime_for(obj.mime_type, self._options.apps_export_map)
        return f"{DRIVE_FILES_URL}/{obj.object_id}/export?mimeType={quote(export_mime, safe='')}"

    def open_stream(self, obj: RemoteObject) -> ContentStream:
        """
        Return the live content stream of obj.

        Raises:
            AuthError: no access token could be obtained.
            TooManyRedirectsError: the redirect chain exceeds the hop ceiling.
            NetworkError: connection failure.
            GDriveFsError subclasses: final response was not successful.
        """
        ctx = RedirectContext(url=self.download_url(obj))
        session = self._new_session()
        try:
            while True:
                if ctx.hops >= self._options.max_redirect_hops:
                    raise TooManyRedirectsError(
                        "Too many redirects",
                        details={"object_id": obj.object_id, "hops": ctx.hops},
                    )
                self._ensure_token(ctx)
                response = self._request(session, ctx)
                location = response.headers.get("Location")
                if location:
                    response.close()
                    ctx.hops += 1
                    ctx.url = urljoin(ctx.url, location)
                    logger.debug(
                        "Download of %s redirected (hop %d) to %s",
                        obj.object_id,
                        ctx.hops,
                        urlparse(ctx.url).netloc,
                    )
                    continue

                if not 200 <= response.status_code < 300:
                    response.close()
                    raise map_http_error(
                        HttpErrorInfo(
                            status_code=response.status_code,
                            reason=getattr(response, "reason", None),
                            details={"object_id": obj.object_id},
                        )
                    )
                return ContentStream(response, session)
        except BaseException:
            session.close()
            raise

    def _new_session(self) -> Any:
        session = self._session_factory()
        # Cookies are tracked per logical download in RedirectContext only.
        session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        return session

    def _request(self, session: Any, ctx: RedirectContext) -> Any:
        host = urlparse(ctx.url).hostname or ""
        headers = {
            "Authorization": f"Bearer {ctx.token}",
            "Connection": "close",
            "Accept-Encoding": "identity",
        }
        cookie = ctx.cookie_header(host)
        if cookie:
            headers["Cookie"] = cookie

        try:
            response = session.get(
                ctx.url,
                headers=headers,
                stream=True,
                allow_redirects=False,
                timeout=self._options.download_timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError("Download request failed", details={"host": host}, cause=exc) from exc

        for set_cookie in _set_cookie_headers(response):
            ctx.record_cookie(set_cookie, host)
        return response

    def _ensure_token(self, ctx: RedirectContext) -> None:
        # The token fetched for the first hop is reused for the rest.
        if ctx.token:
            return
        ctx.token = self._access_token()
        if not ctx.token:
            raise AuthError("No access token available for download")

    def _access_token(self) -> str:
        creds = self._credentials
        if creds is None:
            raise AuthError("No credential provider configured")

        if creds.is_using_assertion_credentials():
            token = creds.fetch_access_token_with_assertion()
        else:
            token = creds.get_access_token()
            if token is not None and not token.access_token and token.refresh_token:
                token = creds.fetch_access_token_with_refresh_token()
        return token.access_token if token is not None else ""


def _set_cookie_headers(response: Any) -> list[str]:
    raw_headers = getattr(getattr(response, "raw", None), "headers", None)
    getlist = getattr(raw_headers, "getlist", None)
    if callable(getlist):
        values = getlist("Set-Cookie")
        if isinstance(values, list):
            return values

    value = response.headers.get("Set-Cookie")
    return [value] if value else []
