"""Send requests over a pooled ``requests`` session."""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping

import requests
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase

from reggie.errors import TransportError
from reggie.path import validate_url
from reggie.request import Request
from reggie.response import Response

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 20

_POOL_CONNECTIONS = 100
_SENSITIVE_HEADERS = ("authorization", "proxy-authorization")


class Transport:
    """Validate and execute :class:`Request` values.

    Args:
        insecure_skip_tls_verify: Skip TLS certificate verification.
        timeout: HTTP request timeout in seconds.
        debug: Trace request and response headers at DEBUG level.
    """

    def __init__(
        self,
        *,
        insecure_skip_tls_verify: bool = False,
        timeout: float = 30,
        debug: bool = False,
    ) -> None:
        self.timeout = timeout
        self.debug = debug
        self._session = _create_session(insecure_skip_tls_verify)

    def dispatch(self, request: Request) -> Response:
        """Send *request* once and wrap the result.

        Raises:
            InvalidRequestError: If the URL is not dispatchable; nothing is sent.
            TransportError: If the exchange fails below HTTP.
        """
        validate_url(request.url)
        return self.execute(
            request.method,
            request.url,
            headers=request.headers,
            params=request.params,
            body=request.body,
        )

    def execute(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        body: Any = None,
        auth: tuple[str, str] | None = None,
    ) -> Response:
        """Run a single HTTP exchange without placeholder validation."""
        logger.debug("%s %s", method, url)
        if self.debug:
            logger.debug("> headers: %s", _redact(headers or {}))

        kwargs: dict[str, Any] = {}
        if isinstance(body, (dict, list)):
            kwargs["json"] = body
        elif isinstance(body, str):
            kwargs["data"] = body.encode("utf-8")
        elif body is not None:
            kwargs["data"] = body

        try:
            raw = self._session.request(
                method,
                url,
                headers=dict(headers or {}),
                params=dict(params or {}),
                auth=auth,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        logger.debug("%s %s -> %s", method, url, raw.status_code)
        if self.debug:
            logger.debug("< headers: %s", _redact(raw.headers))
        return Response(raw)

    def close(self) -> None:
        self._session.close()


class _HeaderAuth(AuthBase):
    """Leave the request's own ``Authorization`` header untouched.

    Set as the session auth so ``requests`` never consults ``~/.netrc``.
    """

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        return r


def _create_session(insecure_skip_tls_verify: bool) -> requests.Session:
    """Build a pooled session honouring the TLS setting and environment proxies."""
    session = requests.Session()
    session.auth = _HeaderAuth()
    session.verify = not insecure_skip_tls_verify
    session.max_redirects = MAX_REDIRECTS
    # Only send an Accept header when the caller sets one.
    session.headers.pop("Accept", None)

    pool_maxsize = (os.cpu_count() or 1) + 1
    adapter = HTTPAdapter(pool_connections=_POOL_CONNECTIONS, pool_maxsize=pool_maxsize)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _redact(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        key: ("***" if key.lower() in _SENSITIVE_HEADERS else value)
        for key, value in headers.items()
    }

