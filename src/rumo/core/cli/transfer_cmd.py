"""rumo export / import / demo: whole-blob backups."""

from __future__ import annotations

import click


@click.command("export")
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def export_cmd(ctx: click.Context, path: str) -> None:
    """Write a JSON backup of holdings, sales and settings."""
    from rumo.core.cli.common import cli_errors, get_services
    from rumo.financial.transfer import export_to_file

    services = get_services(ctx)
    with cli_errors():
        written = export_to_file(path, services.holdings, services.ledger)
    click.echo(f"Exported to {written}")


@click.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_cmd(ctx: click.Context, path: str) -> None:
    """Replace stored data with a JSON backup."""
    from rumo.core.cli.common import cli_errors, get_services
    from rumo.financial.transfer import import_from_file

    services = get_services(ctx)
    with cli_errors():
        result = import_from_file(path, services.holdings, services.ledger, services.bus)
    suffix = f", {len(result.trades)} sales" if result.trades is not None else ""
    click.echo(f"Imported {len(result.holdings.stocks)} stocks, {len(result.holdings.crypto)} coins{suffix}")


@click.command("demo")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def demo_cmd(ctx: click.Context, path: str) -> None:
    """Load a demo dataset."""
    from rumo.core.cli.common import cli_errors, get_services
    from rumo.financial.transfer import load_demo

    services = get_services(ctx)
    with cli_errors():
        load_demo(path, services.holdings, services.ledger, services.bus)
    click.echo("Demo loaded.")
