"""rumo trades: record, edit and delete realized sales."""

from __future__ import annotations

import click

_CLASSES = click.Choice(["stocks", "crypto", "other"], case_sensitive=False)


@click.group()
def trades() -> None:
    """Realized sales ledger."""


@trades.command("list")
@click.option("--year", default=None, help="Only sales from this year ('all' for every year).")
@click.option("--class", "asset_class", default=None, help="stocks, crypto, other or all.")
@click.pass_context
def list_trades(ctx: click.Context, year: str | None, asset_class: str | None) -> None:
    """List sales with totals and the tax estimate."""
    from rich.console import Console
    from rich.table import Table

    from rumo.core.cli.common import cli_errors, get_services, money, percent

    services = get_services(ctx)
    with cli_errors():
        if year is not None or asset_class is not None:
            services.ledger.update_settings(year=year, asset_class=asset_class)
        view = services.ledger.view()

    if not view.rows:
        click.echo("No sales recorded yet.")
        return

    table = Table()
    for column in ("ID", "Date", "Class", "Ticker", "Qty", "Avg buy", "Sell", "Invested", "Received", "Profit", "%"):
        table.add_column(column)
    for row in view.rows:
        t, d = row.trade, row.derived
        table.add_row(
            t.id,
            t.date,
            t.asset_class.value,
            t.ticker,
            f"{t.qty:g}",
            f"{t.avg_buy_price:g}",
            f"{t.sell_price:g}",
            money(d.invested),
            money(d.received),
            money(d.profit),
            percent(d.profit_pct),
        )

    console = Console()
    console.print(table)
    totals = view.totals
    console.print(
        f"Invested {money(totals.invested)} | Received {money(totals.received)} | "
        f"Profit {money(totals.profit)} ({percent(totals.profit_pct)})"
    )
    if view.settings.show_tax:
        console.print(f"Estimated tax at {view.settings.tax_rate_pct:g}%: {money(totals.net_result_tax)}")


def _trade_options(func):  # type: ignore[no-untyped-def]
    func = click.option("--notes", default=None)(func)
    func = click.option("--fees", type=float, default=None)(func)
    func = click.option("--sell-price", type=float, default=None)(func)
    func = click.option("--avg-buy", "avg_buy_price", type=float, default=None)(func)
    func = click.option("--qty", type=float, default=None)(func)
    func = click.option("--ticker", default=None)(func)
    func = click.option("--class", "asset_class", type=_CLASSES, default=None)(func)
    func = click.option("--date", "trade_date", default=None, help="YYYY-MM-DD")(func)
    return func


def _collect(**fields) -> dict:  # type: ignore[no-untyped-def]
    data = {k: v for k, v in fields.items() if v is not None}
    if "trade_date" in data:
        data["date"] = data.pop("trade_date")
    return data


@trades.command("add")
@_trade_options
@click.pass_context
def add_trade(ctx: click.Context, **fields) -> None:  # type: ignore[no-untyped-def]
    """Record a sale and take it out of holdings."""
    from datetime import date

    from rumo.core.cli.common import cli_errors, get_services

    data = _collect(**fields)
    data.setdefault("date", date.today().isoformat())
    data.setdefault("fees", 0)
    services = get_services(ctx)
    with cli_errors():
        trade = services.engine.upsert(data)
    click.echo(f"Recorded {trade.id}: {trade.qty:g} {trade.ticker}")


@trades.command("edit")
@click.argument("trade_id")
@_trade_options
@click.pass_context
def edit_trade(ctx: click.Context, trade_id: str, **fields) -> None:  # type: ignore[no-untyped-def]
    """Change a recorded sale; omitted options keep their values."""
    from rumo.core.cli.common import cli_errors, get_services
    from rumo.financial import EditorSession

    services = get_services(ctx)
    session = EditorSession()
    with cli_errors():
        current = services.engine.begin_edit(session, trade_id)
        data = {**current.to_dict(), **_collect(**fields)}
        trade = services.engine.upsert(data, session)
    click.echo(f"Updated {trade.id}")


@trades.command("delete")
@click.argument("trade_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def delete_trade(ctx: click.Context, trade_id: str, yes: bool) -> None:
    """Delete a sale and put its quantity back into holdings."""
    from rumo.core.cli.common import cli_errors, get_services

    services = get_services(ctx)
    confirm = (lambda _msg: True) if yes else (lambda msg: click.confirm(msg, default=False))
    with cli_errors():
        deleted = services.engine.remove(trade_id, confirm=confirm)
    click.echo(f"Deleted {trade_id}" if deleted else "Aborted.")


@trades.command("clear")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def clear_trades(ctx: click.Context, yes: bool) -> None:
    """Delete every sale, restoring holdings."""
    from rumo.core.cli.common import cli_errors, get_services

    services = get_services(ctx)
    confirm = (lambda _msg: True) if yes else (lambda msg: click.confirm(msg, default=False))
    with cli_errors():
        removed = services.engine.clear_all(confirm=confirm)
    click.echo(f"Removed {removed} sales.")
