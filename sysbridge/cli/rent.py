#!/usr/bin/env python3
"""
Sysbridge Rent CLI

Command-line access to the rent exemption estimator.

Usage:
    sysbridge-rent estimate --size SIZE [--rent-data HEX]
    sysbridge-rent decode <hex>
    sysbridge-rent show-config [--config FILE]
"""

import json
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from sysbridge import __version__
from sysbridge.config import load_config
from sysbridge.constants import LAMPORTS_PER_SOL
from sysbridge.exceptions import ConfigurationError, DecodeError, RentOverflowError
from sysbridge.logger import get_logger, set_log_level
from sysbridge.rent import RentConfig, decode_rent_config, host_minimum_balance

logger = get_logger(__name__)
console = Console()


def parse_hex(value: str) -> bytes:
    """Parse a hex string with optional 0x prefix."""
    value = value.strip()
    if value.startswith(("0x", "0X")):
        value = value[2:]
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise click.BadParameter(f"not a hex string: {e}") from e


def format_lamports(lamports: int) -> str:
    return f"{lamports:,} lamports ({lamports / LAMPORTS_PER_SOL:.9f} SOL)"


@click.group()
@click.version_option(version=__version__, prog_name="sysbridge-rent")
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to sysbridge.toml (default: $SYSBRIDGE_CONFIG or ./sysbridge.toml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str]):
    """Rent exemption tools for the System program bridge."""
    try:
        config = load_config(config_path)
        config.validate()
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    set_log_level(config.logging.level)
    ctx.obj = config


@cli.command("estimate")
@click.option("--size", "-s", type=click.IntRange(min=0), required=True, help="Account data size in bytes")
@click.option(
    "--rent-data", "-r",
    default=None,
    help="Hex-encoded rent sysvar (default: built from the [rent] config section)",
)
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable output")
@click.pass_obj
def estimate_cmd(config, size: int, rent_data: Optional[str], as_json: bool):
    """Minimum balance for an account of SIZE data bytes to be rent exempt.

    Examples:

        sysbridge-rent estimate --size 165

        sysbridge-rent estimate --size 165 --rent-data 980d000000000000333333333333f33f32
    """
    if rent_data is None:
        data = config.rent.to_rent_config().to_bytes()
    else:
        data = parse_hex(rent_data)

    try:
        rent = decode_rent_config(data)
        balance = rent.minimum_balance(size)
        host_balance = host_minimum_balance(size, rent)
    except (DecodeError, RentOverflowError) as e:
        raise click.ClickException(str(e))

    logger.debug("Estimated %s lamports for %d bytes", balance, size)

    if as_json:
        click.echo(json.dumps({
            "size": size,
            "minimum_balance": balance,
            "host_minimum_balance": host_balance,
        }))
        return

    click.echo(f"Minimum balance: {format_lamports(balance)}")
    if host_balance != balance:
        click.echo(click.style(
            f"Host formula:    {format_lamports(host_balance)}", fg="yellow"
        ))


@cli.command("decode")
@click.argument("rent_data")
def decode_cmd(rent_data: str):
    """Decode a hex-encoded rent sysvar."""
    try:
        rent = decode_rent_config(parse_hex(rent_data))
    except DecodeError as e:
        raise click.ClickException(str(e))
    _print_rent(rent)


@cli.command("show-config")
@click.pass_obj
def show_config_cmd(config):
    """Print the active configuration."""
    click.echo(json.dumps(config.to_dict(), indent=2))


def _print_rent(rent: RentConfig) -> None:
    table = Table(title="Rent sysvar")
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("lamports_per_byte_year", str(rent.lamports_per_byte_year))
    table.add_row("exemption_threshold", repr(rent.exemption_threshold))
    table.add_row("burn_percent", str(rent.burn_percent))
    console.print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
