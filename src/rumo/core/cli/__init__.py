"""Rumo CLI: entry point for summary, trades and backup commands."""

import click

from rumo import __version__


@click.group()
@click.version_option(version=__version__, package_name="rumo")
@click.option("--config", "config_file", default=None, help="YAML or JSON config file.")
@click.option("--data-dir", default=None, help="Directory holding the stored data.")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, data_dir: str | None, log_level: str | None) -> None:
    """Rumo: track holdings, realized sales and recurring income."""
    ctx.ensure_object(dict)
    ctx.obj.update(config_file=config_file, data_dir=data_dir, log_level=log_level)


# Register subcommands (lazy imports inside commands keep startup fast)
from .summary_cmd import summary
from .trades_cmd import trades
from .transfer_cmd import demo_cmd, export_cmd, import_cmd

main.add_command(summary)
main.add_command(trades)
main.add_command(export_cmd)
main.add_command(import_cmd)
main.add_command(demo_cmd)
