"""Request values built from registry path templates."""

from __future__ import annotations

import base64
import copy
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from requests.structures import CaseInsensitiveDict

from reggie.path import join_url, substitute

if TYPE_CHECKING:
    from reggie.client import ClientConfig

logger = logging.getLogger(__name__)

#: Hook run on the replay copy of a request before it is re-sent.
RetryCallback = Callable[["Request"], None]


@dataclass
class Request:
    """An HTTP request to be sent to an OCI registry.

    The method and URL are fixed once the request is built. Headers, query
    parameters and the body may still be set through the fluent setters
    until the request is handed to :meth:`reggie.client.Client.do`.

    Attributes:
        method: HTTP method (``GET``, ``PUT``, ...).
        url: Absolute URL with every path placeholder resolved.
        headers: Case-insensitive header mapping.
        params: Query parameters.
        body: Raw bytes, text, a file-like object, or a dict/list sent as JSON.
        retry_callback: Called with the replay request before it is sent.
    """

    method: str
    url: str
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    params: dict[str, str] = field(default_factory=dict)
    body: Any = None
    retry_callback: RetryCallback | None = None

    def set_header(self, header: str, content: str) -> Request:
        self.headers[header] = content
        return self

    def set_query_param(self, param: str, content: str) -> Request:
        self.params[param] = content
        return self

    def set_body(self, body: Any) -> Request:
        self.body = body
        return self

    def set_basic_auth(self, username: str, password: str) -> Request:
        """Set an HTTP Basic ``Authorization`` header."""
        raw = f"{username}:{password}".encode("utf-8")
        encoded = base64.b64encode(raw).decode("ascii")
        return self.set_header("Authorization", f"Basic {encoded}")

    def set_auth_token(self, token: str) -> Request:
        """Set a ``Bearer`` ``Authorization`` header."""
        return self.set_header("Authorization", f"Bearer {token}")

    def copy(self) -> Request:
        """Return an independent request sharing nothing mutable with this one.

        File-like bodies are shared as-is; a retry callback is the place
        to rewind or replace them.
        """
        body = self.body
        if isinstance(body, (dict, list)):
            body = copy.deepcopy(body)
        return Request(
            method=self.method,
            url=self.url,
            headers=CaseInsensitiveDict(self.headers),
            params=dict(self.params),
            body=body,
            retry_callback=self.retry_callback,
        )


def build_request(
    config: ClientConfig,
    method: str,
    path: str,
    *,
    name: str | None = None,
    reference: str | None = None,
    digest: str | None = None,
    session_id: str | None = None,
    retry_callback: RetryCallback | None = None,
) -> Request:
    """Resolve a path template against *config* into a :class:`Request`.

    The namespace given here wins over ``config.default_name``. No
    validation happens at build time; an unresolved placeholder is reported
    when the request is dispatched.

    Args:
        config: Snapshot of the client configuration, read once.
        method: HTTP method.
        path: Path template, e.g. ``/v2/<name>/blobs/<digest>``.

    Returns:
        A new request carrying only the ``User-Agent`` header.
    """
    namespace = name or config.default_name
    resolved = substitute(
        path,
        name=namespace,
        reference=reference,
        digest=digest,
        session_id=session_id,
    )
    url = join_url(config.address, resolved)
    logger.debug("Built request %s %s", method, url)

    request = Request(method=method, url=url, retry_callback=retry_callback)
    request.set_header("User-Agent", config.user_agent)
    return request
