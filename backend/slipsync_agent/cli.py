# Overview: Command-line entry point for the print agent (pair once, then run).

from __future__ import annotations

import logging

import click
import httpx

from .client import BackendClient, PairingError
from .config import apply_env_overrides, load_config, resolve_config_path, save_config
from .loop import AgentLoop
from .printer import FilePrinter


@click.group()
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Agent config file (default: agent-config.json or $SLIPSYNC_AGENT_CONFIG)')
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
@click.pass_context
def main(ctx, config_path, verbose):
    """SlipSync print agent."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = resolve_config_path(config_path)


@main.command('pair')
@click.option('--token', prompt='Paste your sign-in token to pair this device', help='User bearer token')
@click.option('--name', prompt='Device name', help='Display name for this device')
@click.option('--backend-url', default=None, help='Backend API base URL, e.g. https://host/api')
@click.pass_context
def pair(ctx, token, name, backend_url):
    """Exchange a user token for this device's long-lived secret."""
    config_path = ctx.obj["config_path"]
    stored = load_config(config_path, apply_env=False)
    if backend_url:
        stored.backend_url = backend_url
    stored.device_name = name.strip()

    token = token.strip()
    if not token or not stored.device_name:
        raise click.ClickException("Token and device name are required")

    config = apply_env_overrides(stored)
    if backend_url:
        config.backend_url = backend_url
    with BackendClient(config) as client:
        try:
            stored.device_secret = client.register(token, config.device_name)
        except (PairingError, httpx.HTTPError) as exc:
            raise click.ClickException(f"Pairing failed: {exc}")

    save_config(stored, config_path)
    click.echo(f"Device {stored.device_id} paired.")


@main.command('run')
@click.pass_context
def run(ctx):
    """Heartbeat and print queued receipts until interrupted."""
    config = load_config(ctx.obj["config_path"])
    if not config.is_paired:
        raise click.ClickException("Device is not paired. Run: slipsync-agent pair")

    client = BackendClient(config)
    loop = AgentLoop(client, FilePrinter(config.output_dir))
    loop.start(config.heartbeat_interval_seconds, config.poll_interval_seconds)
    click.echo(f"Agent running (ID: {config.device_id})")
    try:
        loop.wait()
    except KeyboardInterrupt:
        click.echo("Stopping agent")
    finally:
        loop.stop(timeout=5)
        client.close()


if __name__ == "__main__":
    main()
