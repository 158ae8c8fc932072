"""Responses returned from an OCI registry."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from typing import Any
from urllib.parse import urlsplit

import jsonschema
import requests
from requests.structures import CaseInsensitiveDict

from reggie.errors import MalformedErrorBodyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorInfo:
    """One entry of a registry error list.

    Attributes:
        code: Error code, e.g. ``BLOB_UNKNOWN``.
        message: Human-readable message.
        detail: Unstructured detail, any JSON value.
    """

    code: str
    message: str = ""
    detail: Any = None


class Response:
    """An HTTP response returned from an OCI registry.

    Wraps a :class:`requests.Response`; read-only once built.
    """

    def __init__(self, raw: requests.Response) -> None:
        self.raw = raw

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}]>"

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def headers(self) -> CaseInsensitiveDict:
        return self.raw.headers

    @property
    def body(self) -> bytes:
        return self.raw.content

    @property
    def text(self) -> str:
        return self.raw.text

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return self.raw.json()

    def get_relative_location(self) -> str:
        """Return the path (and ``?query``) of the ``Location`` header URL.

        Returns an empty string if the header is absent or cannot be parsed.
        """
        location = self.headers.get("Location", "")
        try:
            parts = urlsplit(location)
        except ValueError:
            return ""

        path = parts.path
        if parts.query:
            path += "?" + parts.query
        return path

    def get_absolute_location(self) -> str:
        """Return the ``Location`` header exactly as sent, scheme and host included."""
        return self.headers.get("Location", "")

    def errors(self) -> list[ErrorInfo]:
        """Parse the body as a registry error list.

        Returns:
            Every error entry, in body order.

        Raises:
            MalformedErrorBodyError: If the body is not JSON shaped like
                ``{"errors": [{"code": ..., "message": ..., "detail": ...}]}``.
        """
        try:
            payload = json.loads(self.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedErrorBodyError(
                f"Response body is not valid JSON: {exc}"
            ) from exc

        try:
            jsonschema.validate(instance=payload, schema=_load_errors_schema())
        except jsonschema.ValidationError as exc:
            raise MalformedErrorBodyError(
                f"Response body is not a registry error list: {exc.message}"
            ) from exc

        entries = [
            ErrorInfo(
                code=entry["code"],
                message=entry.get("message", ""),
                detail=entry.get("detail"),
            )
            for entry in payload["errors"]
        ]
        logger.debug("Parsed %d registry error(s)", len(entries))
        return entries


@lru_cache(maxsize=None)
def _load_errors_schema() -> dict[str, Any]:
    """Load the error-list JSON Schema from the ``reggie.schemas`` package."""
    schema_ref = resources.files("reggie.schemas").joinpath("errors.schema.json")
    schema_text = schema_ref.read_text(encoding="utf-8")
    return json.loads(schema_text)  # type: ignore[no-any-return]
