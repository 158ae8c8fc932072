"""Substitute and validate the placeholders of registry path templates."""

from __future__ import annotations

import re

from reggie.errors import InvalidRequestError

NAME = "<name>"
REFERENCE = "<reference>"
DIGEST = "<digest>"
SESSION_ID = "<session_id>"

PLACEHOLDERS = (NAME, REFERENCE, DIGEST, SESSION_ID)

# A placeholder left behind, or a run of slashes anywhere but right after the scheme.
_INVALID_URL_RE = re.compile(r"<name>|<reference>|<digest>|<session_id>|(?<!:)//+")


def substitute(
    template: str,
    *,
    name: str | None = None,
    reference: str | None = None,
    digest: str | None = None,
    session_id: str | None = None,
) -> str:
    """Replace each placeholder in *template* that has a value.

    Empty or ``None`` values leave their placeholder untouched, so an
    unresolved template is caught later by :func:`validate_url`.

    Args:
        template: Path such as ``/v2/<name>/manifests/<reference>``.

    Returns:
        The path with every supplied value substituted.
    """
    replacements = {
        NAME: name,
        REFERENCE: reference,
        DIGEST: digest,
        SESSION_ID: session_id,
    }
    path = template
    for placeholder, value in replacements.items():
        if value:
            path = path.replace(placeholder, value)
    return path


def join_url(address: str, path: str) -> str:
    """Join a base address (no trailing slash) and a path with exactly one ``/``."""
    if path.startswith("/"):
        path = path[1:]
    return f"{address}/{path}"


def is_valid_url(url: str) -> bool:
    """Return whether *url* can be dispatched as-is."""
    return _INVALID_URL_RE.search(url) is None


def validate_url(url: str) -> None:
    """Raise :class:`InvalidRequestError` if *url* cannot be dispatched."""
    match = _INVALID_URL_RE.search(url)
    if match is not None:
        raise InvalidRequestError(
            f"request is invalid: unexpected {match.group(0)!r} in {url}"
        )
