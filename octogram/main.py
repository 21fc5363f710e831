"""Octogram entry point: serve the relay, or render and sign saved payloads."""

from __future__ import annotations

import asyncio
import json
import signal
import sys
from typing import Any

import click

from octogram.config import Settings, load_settings
from octogram.core.formatter import supported_events, try_format
from octogram.core.signature import SIGNATURE_PREFIX, compute_signature
from octogram.telegram.sender import TelegramSender
from octogram.utils.logging import get_logger, setup_logging
from octogram.webhooks.server import WebhookServer

log = get_logger(__name__)


async def run(settings: Settings) -> None:
    server = WebhookServer(settings, TelegramSender(settings.telegram))

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await server.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await server.stop()


def _read_payload(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _load(params: dict[str, Any], **overrides: Any) -> Settings:
    """Settings from the group's --config/--log-level plus command overrides."""
    if params.get("log_level"):
        overrides["log_level"] = params["log_level"]
    return load_settings(params.get("config_path"), **overrides)


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """Octogram, a GitHub webhook relay for Telegram."""
    settings = _load(ctx.params)
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    ctx.obj = settings


@cli.command()
@click.option("--port", type=int, default=None, help="Override the listening port")
@click.pass_context
def serve(ctx: click.Context, port: int | None) -> None:
    """Run the webhook server until SIGINT/SIGTERM."""
    settings: Settings = ctx.obj
    if port is not None:
        settings = _load(ctx.parent.params, server={"port": port})
    asyncio.run(run(settings))


@cli.command()
@click.argument("event")
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def render(ctx: click.Context, event: str, payload_file: str) -> None:
    """Print the Telegram message for a saved EVENT payload."""
    if event not in supported_events():
        raise click.BadParameter(f"unsupported event type: {event}", param_hint="EVENT")
    try:
        payload = json.loads(_read_payload(payload_file))
    except ValueError as exc:
        raise click.ClickException(f"invalid JSON in {payload_file}: {exc}") from exc
    result = try_format(event, payload)
    if not result.ok:
        click.echo(result.message)
        click.echo(f"error: {type(result.error).__name__}: {result.error}", err=True)
        ctx.exit(1)
    if not result.message:
        click.echo("(no message for this payload)", err=True)
        return
    click.echo(result.message)


@cli.command()
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--secret", default=None, help="Webhook secret (defaults to the configured one)")
@click.pass_obj
def sign(settings: Settings, payload_file: str, secret: str | None) -> None:
    """Print the X-Hub-Signature-256 header value for PAYLOAD_FILE."""
    secret = secret or settings.github.webhook_secret
    if not secret:
        raise click.UsageError("no secret given and github.webhook_secret is not configured")
    click.echo(SIGNATURE_PREFIX + compute_signature(secret, _read_payload(payload_file)))


if __name__ == "__main__":
    cli()
