"""reggie — HTTP client for OCI distribution registries."""

from __future__ import annotations

__version__ = "0.4.0"

from reggie.client import DEFAULT_USER_AGENT, Client, ClientConfig
from reggie.errors import (
    AuthFetchError,
    ConfigError,
    InvalidRequestError,
    MalformedErrorBodyError,
    ReggieError,
    RetryCallbackError,
    TransportError,
    UnsupportedAuthSchemeError,
)
from reggie.methods import DELETE, GET, HEAD, OPTIONS, PATCH, POST, PUT
from reggie.request import Request
from reggie.response import ErrorInfo, Response

__all__ = [
    "AuthFetchError",
    "Client",
    "ClientConfig",
    "ConfigError",
    "DEFAULT_USER_AGENT",
    "DELETE",
    "ErrorInfo",
    "GET",
    "HEAD",
    "InvalidRequestError",
    "MalformedErrorBodyError",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
    "ReggieError",
    "Request",
    "Response",
    "RetryCallbackError",
    "TransportError",
    "UnsupportedAuthSchemeError",
    "__version__",
]
