"""CLI entry point for reggie."""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
from pathlib import Path

import click

from reggie import __version__
from reggie.client import Client
from reggie.credentials import registry_host, resolve_credentials
from reggie.errors import ReggieError
from reggie.methods import DELETE, GET, HEAD, OPTIONS, PATCH, POST, PUT

logger = logging.getLogger(__name__)

_METHODS = (GET, PUT, PATCH, DELETE, POST, HEAD, OPTIONS)


def _parse_pairs(values: tuple[str, ...], sep: str, what: str) -> dict[str, str]:
    """Parse ``key<sep>value`` strings into a dict."""
    pairs: dict[str, str] = {}
    for value in values:
        if sep not in value:
            raise click.BadParameter(f"Expected '{what}', got '{value}'")
        key, content = value.split(sep, 1)
        pairs[key.strip()] = content.strip()
    return pairs


@click.group()
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Enable verbose (DEBUG) logging.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """reggie — OCI distribution registry HTTP client."""
    ctx.ensure_object(dict)["verbose"] = verbose
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
@click.argument("method", type=click.Choice(_METHODS, case_sensitive=False))
@click.argument("path")
@click.option(
    "-A",
    "--address",
    envvar="REGGIE_ADDRESS",
    required=True,
    help="Registry base URL (e.g. https://registry.example.com). Env: REGGIE_ADDRESS.",
)
@click.option("-n", "--name", help="Namespace substituted for <name>.")
@click.option("-r", "--reference", help="Tag or digest substituted for <reference>.")
@click.option("--digest", help="Digest substituted for <digest>.")
@click.option("--session-id", help="Upload session ID substituted for <session_id>.")
@click.option(
    "-H",
    "--header",
    "headers",
    multiple=True,
    help="Request header in 'Key: Value' format. Can be repeated.",
)
@click.option(
    "-q",
    "--query",
    "query",
    multiple=True,
    help="Query parameter in key=value format. Can be repeated.",
)
@click.option("-d", "--data", help="Request body.")
@click.option(
    "--data-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the request body from a file.",
)
@click.option(
    "--auth",
    "auth",
    multiple=True,
    help="Credentials in registry.domain=user:pass format. Can be repeated.",
)
@click.option(
    "--insecure",
    is_flag=True,
    default=False,
    help="Skip TLS certificate verification.",
)
@click.option(
    "--scope",
    "auth_scope",
    help="Override the scope requested from the token endpoint.",
)
@click.option(
    "--errors",
    "show_errors",
    is_flag=True,
    default=False,
    help="Print the registry error list of the response as JSON.",
)
@click.pass_context
def request(
    ctx: click.Context,
    method: str,
    path: str,
    address: str,
    name: str | None,
    reference: str | None,
    digest: str | None,
    session_id: str | None,
    headers: tuple[str, ...],
    query: tuple[str, ...],
    data: str | None,
    data_file: Path | None,
    auth: tuple[str, ...],
    insecure: bool,
    auth_scope: str | None,
    show_errors: bool,
) -> None:
    """Send a single request to a registry.

    PATH is a path template such as /v2/<name>/manifests/<reference>.
    Authentication challenges are answered automatically.
    """
    if data is not None and data_file is not None:
        raise click.UsageError("--data and --data-file are mutually exclusive.")

    header_map = _parse_pairs(headers, ":", "Key: Value")
    query_map = _parse_pairs(query, "=", "key=value")

    host = registry_host(address)
    username, password = resolve_credentials(host, list(auth) if auth else None)
    logger.debug("Credentials for %s: %s", host, "found" if username else "none")
    debug = bool(ctx.obj and ctx.obj.get("verbose"))

    try:
        with Client(
            address,
            username=username,
            password=password,
            debug=debug,
            insecure_skip_tls_verify=insecure,
            auth_scope=auth_scope,
        ) as client:
            req = client.new_request(
                method.upper(),
                path,
                name=name,
                reference=reference,
                digest=digest,
                session_id=session_id,
            )
            for key, value in header_map.items():
                req.set_header(key, value)
            for key, value in query_map.items():
                req.set_query_param(key, value)
            if data is not None:
                req.set_body(data)
            elif data_file is not None:
                req.set_body(data_file.read_bytes())

            resp = client.do(req)

            click.echo(f"{req.method} {req.url} -> {resp.status_code}", err=True)
            for key, value in resp.headers.items():
                click.echo(f"  {key}: {value}", err=True)

            if show_errors:
                errors = [dataclasses.asdict(e) for e in resp.errors()]
                click.echo(json.dumps(errors, indent=2))
            elif resp.body:
                click.echo(resp.text)
    except ReggieError as exc:
        raise click.ClickException(str(exc)) from exc


@main.command()
def version() -> None:
    """Print the reggie version."""
    click.echo(f"reggie version {__version__}")
