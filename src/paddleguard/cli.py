"""PaddleGuard CLI - Sign, verify and replay Paddle webhook payloads."""

import asyncio
import sys
from collections.abc import Callable, Coroutine
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, ParamSpec, TypeVar

import aiohttp
import click
from rich.console import Console
from rich.table import Table

from paddleguard.common.settings import get_settings
from paddleguard.signature import build_signature_header, verify

console = Console()

P = ParamSpec("P")
R = TypeVar("R")

SECRET_ENV = "PADDLEGUARD_WEBHOOK_SECRET"


def async_command(f: Callable[P, Coroutine[Any, Any, R]]) -> Callable[P, R]:
    """Decorator to run async commands."""

    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def _read_body(body_file: str) -> bytes:
    if body_file == "-":
        return sys.stdin.buffer.read()
    path = Path(body_file)
    if not path.exists():
        console.print(f"[red]Body file not found: {body_file}[/red]")
        sys.exit(1)
    # Raw bytes; any re-encoding would change the digest
    return path.read_bytes()


secret_option = click.option(
    "--secret",
    "-s",
    envvar=SECRET_ENV,
    required=True,
    help=f"Webhook secret (or ${SECRET_ENV})",
)
body_option = click.option(
    "--body-file",
    "-b",
    required=True,
    help="Path to the raw request body ('-' for stdin)",
)


@click.group()
def cli() -> None:
    """PaddleGuard CLI - Paddle Billing webhook signatures."""


@cli.command("sign")
@secret_option
@body_option
@click.option("--timestamp", "-t", type=int, help="Unix timestamp (default: now)")
def sign_cmd(secret: str, body_file: str, timestamp: int | None) -> None:
    """Print a Paddle-Signature header for a body."""
    body = _read_body(body_file)
    click.echo(build_signature_header(secret, body, timestamp))


@cli.command("verify")
@secret_option
@body_option
@click.option("--header", "-H", "header", required=True, help="Paddle-Signature header value")
@click.option("--tolerance", default=300, show_default=True, help="Max event age in seconds")
@click.option("--now", type=int, help="Unix time to verify at (default: now)")
def verify_cmd(
    secret: str,
    body_file: str,
    header: str,
    tolerance: int,
    now: int | None,
) -> None:
    """Verify a Paddle-Signature header against a body."""
    body = _read_body(body_file)
    at = datetime.fromtimestamp(now, tz=timezone.utc) if now is not None else None
    result = verify(header, secret, body, now=at, window=timedelta(seconds=tolerance))

    table = Table(title="Signature Check")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in result.log_fields().items():
        table.add_row(key, str(value))
    console.print(table)

    if result:
        console.print("[green]✓ Signature is valid[/green]")
    else:
        console.print(f"[red]✗ Signature rejected: {result.reason.value}[/red]")
        sys.exit(1)


@cli.command("send")
@click.argument("url")
@secret_option
@body_option
@click.option("--header-name", default="Paddle-Signature", show_default=True)
@async_command
async def send_cmd(url: str, secret: str, body_file: str, header_name: str) -> None:
    """Sign a body and POST it to a webhook receiver."""
    body = _read_body(body_file)
    headers = {
        header_name: build_signature_header(secret, body),
        "Content-Type": "application/json",
    }

    async with aiohttp.ClientSession() as session:
        try:
            async with session.post(url, data=body, headers=headers) as response:
                detail = await response.text()
                status = response.status
        except aiohttp.ClientError as exc:
            console.print(f"[red]Error: {exc}[/red]")
            sys.exit(1)

    if 200 <= status < 300:
        console.print(f"[green]Delivered ({status}): {detail}[/green]")
    else:
        console.print(f"[red]Receiver answered {status}: {detail}[/red]")
        sys.exit(1)


@cli.command("serve")
@click.option("--host", help="Bind host (default from settings)")
@click.option("--port", type=int, help="Bind port (default from settings)")
def serve_cmd(host: str | None, port: int | None) -> None:
    """Run the webhook receiver."""
    import uvicorn

    from paddleguard.common.logging import setup_logging
    from paddleguard.receiver.main import create_app

    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)
    uvicorn.run(
        create_app(settings),
        host=host or settings.receiver_host,
        port=port or settings.receiver_port,
        log_level=settings.log_level.lower(),
    )


def main() -> None:
    """CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
