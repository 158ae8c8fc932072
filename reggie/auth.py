"""Answer ``401 Unauthorized`` challenges and replay the original request."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from reggie.errors import (
    AuthFetchError,
    RetryCallbackError,
    TransportError,
    UnsupportedAuthSchemeError,
)
from reggie.methods import GET
from reggie.request import Request
from reggie.response import Response

if TYPE_CHECKING:
    from reggie.client import ClientConfig
    from reggie.transport import Transport

logger = logging.getLogger(__name__)

BEARER = "bearer"

_SCHEME_RE = re.compile(r"(bearer|basic)", re.IGNORECASE)
_PARAM_RE = re.compile(r'(\w+)="([^"]*)"')


@dataclass(frozen=True)
class AuthChallenge:
    """A parsed ``WWW-Authenticate`` header.

    Attributes:
        scheme: ``bearer`` or ``basic``.
        realm: Token endpoint URL (Bearer) or protection space (Basic).
        service: Service name to request a token for.
        scope: Requested access scope, e.g. ``repository:library/nginx:pull``.
    """

    scheme: str
    realm: str = ""
    service: str = ""
    scope: str = ""


def parse_challenge(header: str) -> AuthChallenge:
    """Parse a ``WWW-Authenticate`` header value.

    The scheme is the first case-insensitive ``bearer``/``basic`` in the
    value. A later mention, e.g. inside a realm URL, does not change it.
    Parameters are ``key="value"`` pairs in any order; the last occurrence
    of a key wins.

    Raises:
        UnsupportedAuthSchemeError: If neither scheme is named.
    """
    match = _SCHEME_RE.search(header)
    if match is None:
        raise UnsupportedAuthSchemeError(
            f"Unsupported authentication challenge: {header!r}"
        )

    params: dict[str, str] = {}
    for key, value in _PARAM_RE.findall(header):
        params[key.lower()] = value

    return AuthChallenge(
        scheme=match.group(1).lower(),
        realm=params.get("realm", ""),
        service=params.get("service", ""),
        scope=params.get("scope", ""),
    )


class Negotiator:
    """Re-authenticate after a 401 and replay the request exactly once.

    Args:
        config: Client configuration snapshot (credentials, user agent, scope override).
        transport: Transport used for the token fetch and the replay.
    """

    def __init__(self, config: ClientConfig, transport: Transport) -> None:
        self.config = config
        self.transport = transport

    def negotiate(self, request: Request, response: Response) -> Response:
        """Answer the challenge carried by *response* and replay *request*.

        A 401 without a ``WWW-Authenticate`` header is returned unchanged.
        The replay goes out on a copy of *request*, so the caller's value
        never gains an ``Authorization`` header. Whatever the replay returns,
        including another 401, is handed back as-is.

        Raises:
            UnsupportedAuthSchemeError: If the challenge is neither Bearer nor Basic.
            AuthFetchError: If the token realm round trip fails.
            RetryCallbackError: If the request's retry callback raises.
            TransportError: If the replay fails below HTTP.
        """
        header = response.headers.get("WWW-Authenticate", "")
        if not header:
            logger.debug("401 without a challenge for %s", request.url)
            return response

        challenge = parse_challenge(header)
        logger.debug(
            "Challenge: scheme=%s realm=%s service=%s scope=%s",
            challenge.scheme,
            challenge.realm,
            challenge.service,
            challenge.scope,
        )

        replay = request.copy()
        if challenge.scheme == BEARER:
            replay.set_auth_token(self.fetch_token(challenge))
        else:
            replay.set_basic_auth(
                self.config.username or "", self.config.password or ""
            )

        if replay.retry_callback is not None:
            try:
                replay.retry_callback(replay)
            except Exception as exc:
                raise RetryCallbackError(f"Retry callback failed: {exc}") from exc

        logger.debug(
            "Replaying %s %s with %s credentials",
            replay.method,
            replay.url,
            challenge.scheme,
        )
        return self.transport.dispatch(replay)

    def fetch_token(self, challenge: AuthChallenge) -> str:
        """Exchange the configured credentials for a token at the challenge realm.

        The status code is not checked; a JSON error body carries no token.
        ``token`` is preferred over ``access_token``. When neither is
        present the empty string is returned and sent as-is.
        """
        scope = self.config.auth_scope or challenge.scope
        logger.debug(
            "Fetching token: realm=%s service=%s scope=%s",
            challenge.realm,
            challenge.service,
            scope,
        )

        auth = None
        if self.config.username:
            auth = (self.config.username, self.config.password or "")

        try:
            token_resp = self.transport.execute(
                GET,
                challenge.realm,
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.config.user_agent,
                },
                params={"service": challenge.service, "scope": scope},
                auth=auth,
            )
        except TransportError as exc:
            raise AuthFetchError(
                f"Token request to {challenge.realm!r} failed: {exc}"
            ) from exc

        try:
            info = json.loads(token_resp.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise AuthFetchError(
                f"Token endpoint returned invalid JSON: {exc}"
            ) from exc

        if not isinstance(info, dict):
            info = {}
        token = info.get("token") or info.get("access_token") or ""
        if not token:
            logger.warning(
                "Token endpoint %s returned no token, sending an empty one",
                challenge.realm,
            )
        return str(token)
