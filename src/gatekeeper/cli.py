"""
Gatekeeper CLI — gatekeeper run | check-config | decode
"""
import asyncio

import click


@click.group()
@click.version_option(package_name="gatekeeper")
def cli() -> None:
    """Gatekeeper — Telegram approvals for gateway exec requests."""
    pass


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML config file (environment variables are used if omitted)",
)
def run(config_path: str | None) -> None:
    """Connect to the gateway and forward exec approvals to Telegram."""
    from gatekeeper.lifecycle import run as run_runtime

    try:
        asyncio.run(run_runtime(config_path))
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e


@cli.command("check-config")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None)
def check_config(config_path: str | None) -> None:
    """Validate configuration without starting anything."""
    from gatekeeper.config.settings import load_settings

    try:
        settings = load_settings(config_path)
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"Configuration invalid: {e}", err=True)
        raise SystemExit(1) from e

    approvals = settings.exec_approvals
    click.echo("Configuration OK")
    click.echo(f"  exec approvals: {'enabled' if approvals.enabled else 'disabled'}")
    click.echo(f"  approvers: {len(approvals.approvers)}")
    click.echo(f"  gateway: {settings.gateway.url}")


@cli.command()
@click.argument("token")
def decode(token: str) -> None:
    """Decode an exec approval button token (debug helper)."""
    from gatekeeper.approvals.callback_codec import decode as decode_token

    data = decode_token(token)
    if data is None:
        click.echo("not an exec approval token")
        raise SystemExit(1)
    click.echo(f"short id: {data.short_id}")
    click.echo(f"decision: {data.decision.value}")


if __name__ == "__main__":
    cli()
