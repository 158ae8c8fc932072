"""Credential resolution for registry hosts."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from pathlib import Path
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

_DOCKER_HUB_ALIASES = ("docker.io", "index.docker.io", "registry-1.docker.io")


def registry_host(address: str) -> str:
    """Return the ``host[:port]`` part of a registry address."""
    if "://" not in address:
        return address.rstrip("/")
    return urlsplit(address).netloc


def resolve_credentials(
    registry: str,
    cli_auths: list[str] | None = None,
) -> tuple[str | None, str | None]:
    """Resolve credentials for a given registry host.

    Order of precedence:
    1. CLI-provided auth overrides (``--auth`` flag)
    2. Domain-specific env vars (e.g. ``REGGIE_AUTH_REGISTRY_EXAMPLE_COM_USERNAME``)
    3. Global env vars (``REGGIE_USERNAME`` / ``REGGIE_PASSWORD``)
    4. Docker config.json (``~/.docker/config.json``)

    Args:
        registry: The registry host to authenticate against.
        cli_auths: Overrides in the form ``registry=user:pass``.

    Returns:
        A ``(username, password)`` tuple, or ``(None, None)`` if nothing matched.
    """
    aliases = _aliases(registry)

    # 1. CLI overrides
    for auth_override in cli_auths or []:
        if "=" not in auth_override:
            continue
        domain, creds = auth_override.split("=", 1)
        if domain in aliases and ":" in creds:
            user, pwd = creds.split(":", 1)
            logger.debug("Using CLI override credentials for %s", registry)
            return user, pwd

    # 2. Domain-specific environment variables
    for domain in aliases:
        env_domain = domain.upper().replace(".", "_").replace(":", "_").replace("-", "_")
        domain_user = os.environ.get(f"REGGIE_AUTH_{env_domain}_USERNAME")
        domain_pass = os.environ.get(f"REGGIE_AUTH_{env_domain}_PASSWORD")
        if domain_user and domain_pass:
            logger.debug("Using domain-specific env vars for %s", registry)
            return domain_user, domain_pass

    # 3. Global environment variables
    global_user = os.environ.get("REGGIE_USERNAME")
    global_pass = os.environ.get("REGGIE_PASSWORD")
    if global_user and global_pass:
        logger.debug("Using global env vars for %s", registry)
        return global_user, global_pass

    # 4. Docker config.json
    return _docker_config_credentials(registry, aliases)


def _aliases(registry: str) -> tuple[str, ...]:
    if registry in _DOCKER_HUB_ALIASES:
        return (registry, *(alias for alias in _DOCKER_HUB_ALIASES if alias != registry))
    return (registry,)


def _docker_config_credentials(
    registry: str, aliases: tuple[str, ...]
) -> tuple[str | None, str | None]:
    docker_config_path = Path.home() / ".docker" / "config.json"
    if not docker_config_path.exists():
        return None, None

    try:
        with open(docker_config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug("Failed to read %s: %s", docker_config_path, e)
        return None, None

    auths = config.get("auths", {}) if isinstance(config, dict) else {}
    candidates: list[str] = []
    for domain in aliases:
        candidates += [
            domain,
            f"https://{domain}",
            f"https://{domain}/v1/",
            f"https://{domain}/v2/",
        ]
    if registry in _DOCKER_HUB_ALIASES:
        candidates.append("https://index.docker.io/v1/")

    for candidate in candidates:
        entry = auths.get(candidate)
        if not isinstance(entry, dict) or "auth" not in entry:
            continue
        try:
            auth_str = base64.b64decode(entry["auth"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.debug("Failed to decode auth for %s: %s", candidate, e)
            continue
        if ":" in auth_str:
            user, pwd = auth_str.split(":", 1)
            logger.debug("Using Docker config.json credentials for %s", registry)
            return user, pwd

    return None, None
