"""rumo summary: net worth and per-asset totals."""

from __future__ import annotations

import click


@click.command()
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Show net worth, asset totals and recurring income."""
    from rich.console import Console
    from rich.table import Table

    from rumo.core.cli.common import cli_errors, get_services, money, percent
    from rumo.financial.calculators import portfolio as calc

    services = get_services(ctx)
    with cli_errors():
        portfolio = services.holdings.load()
        realized = services.ledger.view().realized

    st = calc.stocks_summary(portfolio)
    cr = calc.crypto_summary(portfolio)
    p2 = calc.p2p_summary(portfolio)
    fd = calc.funds_summary(portfolio)
    nw = calc.net_worth(portfolio)

    assets = Table(title="Assets")
    for column in ("Class", "Invested", "Current", "Profit", "%"):
        assets.add_column(column, justify="left" if column == "Class" else "right")
    assets.add_row("Stocks", money(st.invested), money(st.current), money(st.profit), percent(st.pct))
    assets.add_row("Crypto", money(cr.invested), money(cr.current), money(cr.profit), percent(cr.pct))
    assets.add_row("P2P", money(p2.invested), money(p2.final_value), money(p2.profit), percent(p2.avg_pct))
    assets.add_row("Funds", money(fd.total), money(fd.total), "", percent(fd.avg_rate))

    income = Table(title="Recurring income (run-rate)")
    for column in ("Source", "Year", "Month", "Day"):
        income.add_column(column, justify="left" if column == "Source" else "right")
    for label, rate in (("Dividends", nw.dividends), ("P2P", nw.p2p), ("Funds", nw.funds), ("Total", nw.recurring)):
        income.add_row(label, money(rate.year), money(rate.month), money(rate.day))

    console = Console()
    console.print(assets)
    console.print(income)
    console.print(f"Total invested: {money(nw.total_invested)}")
    console.print(f"Current assets: {money(nw.current_assets)}")
    console.print(f"Total profit:   {money(nw.total_profit)} ({percent(nw.total_profit_pct)})")
    console.print(f"Cash:           {money(nw.cash_balance)}")
    console.print(f"Net worth:      {money(nw.net_worth)}")
    console.print(f"Realized profit: {money(realized.total)} (this year {money(realized.ytd)})")
