"""Shared setup logic for CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import click

from rumo.core.exceptions import RumoError

RUMO_DIR = Path.home() / ".rumo"
CONFIG_PATH = RUMO_DIR / "config.yaml"


@dataclass
class Services:
    """Stores and engine wired to one data directory."""

    config: object
    holdings: object
    ledger: object
    engine: object
    bus: object


def load_config(config_file: str | None = None, data_dir: str | None = None):  # type: ignore[no-untyped-def]
    """Load config from *config_file*, falling back to ~/.rumo/config.yaml."""
    from rumo.core.config import Config

    path = config_file or (str(CONFIG_PATH) if CONFIG_PATH.exists() else None)
    config = Config(config_file=path)
    if data_dir:
        expanded = str(Path(data_dir).expanduser())
        config.set("paths.data_dir", expanded)
        config.set("paths.log_dir", str(Path(expanded) / "logs"))
    return config


def build_services(config) -> Services:  # type: ignore[no-untyped-def]
    """Create the key-value store, both blob stores and the sync engine."""
    from rumo.core.events import EventBus
    from rumo.core.storage import LocalKeyValueStore
    from rumo.financial import HoldingsStore, LedgerSettings, PortfolioSyncEngine, TradeLedger

    settings = config.validated()
    kv = LocalKeyValueStore(base_path=str(settings.paths.data_dir))
    bus = EventBus()
    holdings = HoldingsStore(kv, key=settings.storage.holdings_key, bus=bus)
    ledger = TradeLedger(
        kv,
        trades_key=settings.storage.trades_key,
        settings_key=settings.storage.settings_key,
        default_settings=LedgerSettings(
            show_tax=settings.ledger.show_tax,
            tax_rate_pct=settings.ledger.tax_rate_pct,
        ),
    )
    engine = PortfolioSyncEngine(holdings, ledger, bus=bus)
    return Services(config=config, holdings=holdings, ledger=ledger, engine=engine, bus=bus)


def get_services(ctx: click.Context) -> Services:
    """Build services once per invocation from the group options."""
    root = ctx.find_root()
    root.ensure_object(dict)
    if "services" not in root.obj:
        from rumo.core.utils.logging import setup_logging_from_config

        config = load_config(root.obj.get("config_file"), root.obj.get("data_dir"))
        if root.obj.get("log_level"):
            config.set("logging.level", root.obj["log_level"])
        setup_logging_from_config(config)
        root.obj["services"] = build_services(config)
    return root.obj["services"]


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn library errors into clean CLI failures."""
    try:
        yield
    except RumoError as e:
        raise click.ClickException(str(e)) from e


def money(value: float) -> str:
    return f"{value:,.2f}"


def percent(value: float) -> str:
    return f"{value:.2f}%"
