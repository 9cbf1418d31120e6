"""CLI entry point for identity-registry.

Invoked as::

    identity-registry [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m identity_registry.cli.main

Commands
--------
identity register     Register (or overwrite) an identity
identity update-data  Replace the encrypted data of an identity
identity public-key   Print the public key of an identity
identity data         Print the encrypted data of an identity
invoke                Run an operation host-style with raw JSON arguments
serve                 Run the HTTP server
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Callable, TypeVar

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from identity_registry.ledger.base import Ledger
from identity_registry.ledger.filesystem import FilesystemLedger
from identity_registry.ledger.memory import InMemoryLedger
from identity_registry.middleware.audit import RegistryAuditLogger
from identity_registry.registry.host import RegistryHost, Response

console = Console()

F = TypeVar("F", bound=Callable[..., object])


def _ledger_option(func: F) -> F:
    return click.option(
        "--ledger-dir",
        type=click.Path(file_okay=False, path_type=Path),
        envvar="IDENTITY_REGISTRY_LEDGER_DIR",
        default=None,
        help="Directory of the filesystem ledger. In-memory if omitted.",
    )(func)


def _audit_option(func: F) -> F:
    return click.option(
        "--audit-log",
        type=click.Path(dir_okay=False, path_type=Path),
        envvar="IDENTITY_REGISTRY_AUDIT_LOG",
        default=None,
        help="JSONL file that receives the audit trail. Not kept if omitted.",
    )(func)


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="identity-registry")
def cli() -> None:
    """Per-user public key and encrypted data registry over a ledger"""


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from identity_registry import __version__

    console.print(f"[bold]identity-registry[/bold] v{__version__}")


# ------------------------------------------------------------------
# identity command group
# ------------------------------------------------------------------


@cli.group(name="identity")
def identity_group() -> None:
    """Register and query identities."""


@identity_group.command(name="register")
@click.argument("username")
@click.option("--public-key", "-k", required=True, help="Public key material (opaque).")
@click.option("--data", "-d", default="", help="Caller-encrypted data blob (opaque).")
@click.option("--verified", default="", help="Verification flag to store.")
@_ledger_option
@_audit_option
def register_command(
    username: str,
    public_key: str,
    data: str,
    verified: str,
    ledger_dir: Path | None,
    audit_log: Path | None,
) -> None:
    """Register USERNAME, overwriting any existing record."""
    payload = {
        "username": username,
        "publicKey": public_key,
        "data": data,
        "verified": verified,
    }
    response = _invoke(ledger_dir, audit_log, "Register", payload)
    record: dict[str, str] = json.loads(response.payload)

    console.print(f"[green]Registered[/green] identity [bold]{username}[/bold]")
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value", overflow="fold")
    for key, value in record.items():
        table.add_row(key, escape(value) or "(empty)")
    console.print(table)


@identity_group.command(name="update-data")
@click.argument("username")
@click.option("--data", "-d", required=True, help="New caller-encrypted data blob.")
@_ledger_option
@_audit_option
def update_data_command(
    username: str, data: str, ledger_dir: Path | None, audit_log: Path | None
) -> None:
    """Replace the encrypted data stored for USERNAME."""
    _invoke(ledger_dir, audit_log, "UpdateUserData", {"username": username, "data": data})
    console.print(f"[green]Updated[/green] data of identity [bold]{username}[/bold]")


@identity_group.command(name="public-key")
@click.argument("username")
@_ledger_option
@_audit_option
def public_key_command(
    username: str, ledger_dir: Path | None, audit_log: Path | None
) -> None:
    """Print the public key registered for USERNAME."""
    response = _invoke(ledger_dir, audit_log, "GetPublicKey", {"username": username})
    click.echo(json.loads(response.payload)["publicKey"])


@identity_group.command(name="data")
@click.argument("username")
@_ledger_option
@_audit_option
def data_command(
    username: str, ledger_dir: Path | None, audit_log: Path | None
) -> None:
    """Print the encrypted data stored for USERNAME."""
    response = _invoke(ledger_dir, audit_log, "GetUserData", {"username": username})
    click.echo(json.loads(response.payload)["data"])


# ------------------------------------------------------------------
# invoke
# ------------------------------------------------------------------


@cli.command(name="invoke")
@click.argument("function")
@click.argument("args", nargs=-1)
@_ledger_option
@_audit_option
def invoke_command(
    function: str,
    args: tuple[str, ...],
    ledger_dir: Path | None,
    audit_log: Path | None,
) -> None:
    """Run FUNCTION with raw ARGS, the first being a JSON payload.

    Example: identity-registry invoke GetPublicKey '{"username": "alice"}'
    """
    response = _open_host(ledger_dir, audit_log).invoke(function, list(args))
    if not response.ok:
        _fail(response)
    click.echo(response.payload.decode("utf-8"))


# ------------------------------------------------------------------
# serve
# ------------------------------------------------------------------


@cli.command(name="serve")
@click.option("--host", default="0.0.0.0", show_default=True, help="Bind address.")
@click.option("--port", type=int, default=8080, show_default=True, help="TCP port.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="INFO",
    show_default=True,
    help="Logging level.",
)
@_ledger_option
@_audit_option
def serve_command(
    host: str,
    port: int,
    log_level: str,
    ledger_dir: Path | None,
    audit_log: Path | None,
) -> None:
    """Run the identity-registry HTTP server (blocking)."""
    from identity_registry.server.app import run_server

    logging.basicConfig(level=getattr(logging, log_level))
    run_server(host=host, port=port, ledger_dir=ledger_dir, audit_log=audit_log)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _open_ledger(ledger_dir: Path | None) -> Ledger:
    """Return a filesystem ledger at *ledger_dir*, or a fresh in-memory one."""
    if ledger_dir is None:
        return InMemoryLedger()
    return FilesystemLedger(ledger_dir)


def _open_host(ledger_dir: Path | None, audit_log: Path | None) -> RegistryHost:
    audit_logger = None
    if audit_log is not None:
        audit_logger = RegistryAuditLogger(log_path=audit_log)
    return RegistryHost(_open_ledger(ledger_dir), audit_logger=audit_logger)


def _invoke(
    ledger_dir: Path | None,
    audit_log: Path | None,
    function: str,
    payload: dict[str, str],
) -> Response:
    """Invoke *function* through a host; exit with status 1 on failure."""
    response = _open_host(ledger_dir, audit_log).invoke(function, [json.dumps(payload)])
    if not response.ok:
        _fail(response)
    return response


def _fail(response: Response) -> None:
    console.print(f"[red]Error:[/red] {response.kind}: {escape(response.message)}")
    sys.exit(1)


if __name__ == "__main__":
    cli()
