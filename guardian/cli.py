"""Command line interface for operating a Guardian broker."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import typer

from guardian.backend import GuardianBackend, Operation
from guardian.broker import build_broker
from guardian.config import load_config
from guardian.errors import GuardianError
from guardian.signing import recover_address

app = typer.Typer(help="CLI for the Guardian signing broker")

# Command groups
config_app = typer.Typer(help="Commands for inspecting configuration")

app.add_typer(config_app, name="config")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for broker output"),
) -> None:
    """Guardian CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@config_app.command("show")
def config_show(path: Optional[str] = typer.Option(None, help="Config file to load")) -> None:
    """
    Print the effective configuration with secrets masked.

    Example:
        guardian config show --path ./guardian.yaml
    """
    config = load_config(path)
    typer.echo(json.dumps(config.masked(), indent=2, sort_keys=True))


@app.command("verify")
def verify(digest: str, signature: str, address: str) -> None:
    """
    Check that SIGNATURE over DIGEST was produced by ADDRESS's key.

    Exits with code 1 when the signature is malformed or belongs to another
    address.

    Example:
        guardian verify deadbeef 0x1b2c...00 0xAbC...123
    """
    try:
        recovered = recover_address(digest, signature)
    except ValueError as exc:
        typer.secho(f"Malformed input: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if recovered.lower() != address.lower():
        typer.secho(f"Signature was made by {recovered}, not {address}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"Valid signature by {recovered}")


@app.command("call")
def call(
    path: str,
    read: bool = typer.Option(False, "--read", help="Send a read instead of an update"),
    data: Optional[str] = typer.Option(None, help="JSON object with request fields"),
    secret_id: Optional[str] = typer.Option(
        None, help="Authorize the broker with this secret id first"
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Config file to load"),
) -> None:
    """
    Dispatch one request to a freshly built broker and print the response.

    Example:
        guardian call authorize --data '{"secret_id": "..."}'
        guardian call sign --secret-id "$SECRET_ID" --data '{"session_token": "...", "raw_data": "deadbeef"}'
        guardian call sign --read --data '{"session_token": "..."}'
    """
    try:
        payload = json.loads(data) if data else {}
    except json.JSONDecodeError as exc:
        typer.secho(f"--data is not valid JSON: {exc.msg}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    operation = Operation.READ if read else Operation.UPDATE

    async def _run() -> dict:
        broker = build_broker(load_config(config_path))
        try:
            if secret_id:
                await broker.authorize(secret_id)
            return await GuardianBackend(broker).handle(operation, path, payload)
        finally:
            await broker.aclose()

    try:
        response = asyncio.run(_run())
    except GuardianError as exc:
        typer.secho(f"{exc.code}: {exc.message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(response, sort_keys=True))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
