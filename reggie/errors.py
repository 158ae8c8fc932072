"""Exceptions raised by the registry client."""

from __future__ import annotations


class ReggieError(Exception):
    """Base class for all reggie errors."""


class ConfigError(ReggieError):
    """Raised when the client configuration is invalid."""


class InvalidRequestError(ReggieError):
    """Raised when a request URL still holds a placeholder or an empty path segment.

    Always raised before anything is sent over the network.
    """


class TransportError(ReggieError):
    """Raised when the HTTP exchange itself fails (DNS, TLS, connection, timeout)."""


class AuthFetchError(ReggieError):
    """Raised when the token realm round trip fails."""


class UnsupportedAuthSchemeError(ReggieError):
    """Raised when a challenge names neither the Bearer nor the Basic scheme."""


class RetryCallbackError(ReggieError):
    """Raised when a request's retry callback fails before the replay."""


class MalformedErrorBodyError(ReggieError):
    """Raised when a response body is not a registry error list."""
