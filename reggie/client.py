"""HTTP client for the OCI distribution API."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

from reggie import __version__
from reggie.auth import Negotiator
from reggie.errors import ConfigError
from reggie.request import Request, RetryCallback, build_request
from reggie.response import Response
from reggie.transport import Transport

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"reggie/{__version__}"


@dataclass(frozen=True)
class ClientConfig:
    """Settings a :class:`Client` is built from.

    Attributes:
        address: Registry base URL without a trailing slash.
        username: Username sent to the token realm or as Basic credentials.
        password: Password paired with *username*.
        auth_scope: Replaces the scope requested by the registry's challenge.
        default_name: Namespace substituted for ``<name>`` when a request
            does not set one.
        user_agent: ``User-Agent`` header sent with every request.
        insecure_skip_tls_verify: Skip TLS certificate verification.
        debug: Trace request and response headers at DEBUG level.
        timeout: HTTP request timeout in seconds.
    """

    address: str
    username: str | None = None
    password: str | None = None
    auth_scope: str | None = None
    default_name: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    insecure_skip_tls_verify: bool = False
    debug: bool = False
    timeout: float = 30

    def validate(self) -> None:
        """Check that the address is an absolute URL and a user agent is set.

        Raises:
            ConfigError: If either is missing or malformed.
        """
        if not self.address:
            raise ConfigError("Address is required")

        try:
            parts = urlsplit(self.address)
            # Raises for a non-numeric or out-of-range port.
            port = parts.port
        except ValueError as exc:
            raise ConfigError(f"{self.address} is not a valid URL: {exc}") from exc
        if parts.scheme not in ("http", "https") or not parts.hostname or port == 0:
            raise ConfigError(f"{self.address} is not a valid URL")

        if not self.user_agent:
            raise ConfigError("UserAgent is required")


class Client:
    """Client for sending requests to an OCI registry.

    Answers ``401 Unauthorized`` challenges transparently: a Bearer
    challenge is exchanged for a token at its realm, a Basic challenge is
    answered with the configured credentials, and the request is replayed
    once.

    Args:
        address: Registry base URL (e.g. ``https://registry.example.com``).
        username: Registry username.
        password: Registry password.
        default_name: Namespace used for ``<name>`` placeholders.
        user_agent: Override the default ``User-Agent``.
        debug: Trace request and response headers at DEBUG level.
        insecure_skip_tls_verify: Skip TLS certificate verification.
        auth_scope: Override the scope requested from the token realm.
        timeout: HTTP request timeout in seconds.

    Raises:
        ConfigError: If the address or user agent is invalid.
    """

    def __init__(
        self,
        address: str,
        *,
        username: str | None = None,
        password: str | None = None,
        default_name: str = "",
        user_agent: str | None = None,
        debug: bool = False,
        insecure_skip_tls_verify: bool = False,
        auth_scope: str | None = None,
        timeout: float = 30,
    ) -> None:
        config = ClientConfig(
            address=address.rstrip("/"),
            username=username,
            password=password,
            auth_scope=auth_scope,
            default_name=default_name,
            user_agent=DEFAULT_USER_AGENT if user_agent is None else user_agent,
            insecure_skip_tls_verify=insecure_skip_tls_verify,
            debug=debug,
            timeout=timeout,
        )
        config.validate()
        self.config = config
        self._transport = Transport(
            insecure_skip_tls_verify=insecure_skip_tls_verify,
            timeout=timeout,
            debug=debug,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_default_name(self, namespace: str) -> None:
        """Set the namespace used by requests built from now on."""
        self.config = dataclasses.replace(self.config, default_name=namespace)

    def new_request(
        self,
        method: str,
        path: str,
        *,
        name: str | None = None,
        reference: str | None = None,
        digest: str | None = None,
        session_id: str | None = None,
        retry_callback: RetryCallback | None = None,
    ) -> Request:
        """Build a request from a path template.

        Args:
            method: HTTP method, see :mod:`reggie.methods`.
            path: Path template, e.g. ``/v2/<name>/manifests/<reference>``.
            name: Namespace for this request only.
            reference: Tag or digest for ``<reference>``.
            digest: Digest for ``<digest>``.
            session_id: Upload session ID for ``<session_id>``.
            retry_callback: Called with the replay request before it is
                re-sent after authentication, e.g. to supply a fresh body.

        Returns:
            A new :class:`Request`.
        """
        return build_request(
            self.config,
            method,
            path,
            name=name,
            reference=reference,
            digest=digest,
            session_id=session_id,
            retry_callback=retry_callback,
        )

    def do(self, request: Request) -> Response:
        """Send *request*, authenticating and replaying once on a 401.

        Returns:
            The registry's response. A 401 is returned as a normal response
            when the registry sends no challenge or rejects the replay too.

        Raises:
            InvalidRequestError: If the URL still holds a placeholder.
            TransportError: If an exchange fails below HTTP.
            AuthFetchError: If the token realm round trip fails.
            UnsupportedAuthSchemeError: If the challenge scheme is unknown.
            RetryCallbackError: If the retry callback raises.
        """
        config = self.config
        resp = self._transport.dispatch(request)
        if resp.is_unauthorized:
            logger.debug("401 for %s %s, negotiating", request.method, request.url)
            resp = Negotiator(config, self._transport).negotiate(request, resp)
        return resp

    def close(self) -> None:
        """Release pooled connections."""
        self._transport.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
