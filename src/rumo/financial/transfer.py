"""Bulk export / import of the persisted blobs.

A backup document carries a fixed schema tag and the three blobs::

    {
      "schema": "rumo.backup.v1",
      "exported_at": "...",
      "holdings": {...},
      "trades": [...],
      "settings": {...}
    }

Import checks only the structure (expected top-level keys, arrays of
objects) and then replaces whole blobs; it never merges record by record.
Trade dates must be ISO ``YYYY-MM-DD``; anything else rejects the document.
A bare holdings document, with ``stocks``/``crypto``/... arrays at the top
level as older backups and the demo dataset have, replaces the holdings
blob only.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from ..core.events import SOURCE_IMPORT, EventBus, data_changed
from ..core.exceptions import ImportFormatError, RumoError
from ..core.types import JSONDict, PathLike
from .holdings import HoldingsStore
from .ledger import TradeLedger
from .models import LedgerSettings, Portfolio, RealizedTrade, normalize_date, now_iso

BACKUP_SCHEMA = "rumo.backup.v1"

_HOLDINGS_ARRAYS = ("stocks", "dividends", "crypto", "p2p", "funds")


class _HoldingsShape(BaseModel):
    model_config = ConfigDict(extra="allow")

    stocks: list[dict[str, Any]] = []
    dividends: list[dict[str, Any]] = []
    crypto: list[dict[str, Any]] = []
    p2p: list[dict[str, Any]] = []
    funds: list[dict[str, Any]] = []


class _BackupShape(BaseModel):
    model_config = ConfigDict(extra="allow")

    schema_tag: str
    holdings: _HoldingsShape
    trades: list[dict[str, Any]] = []
    settings: dict[str, Any] | None = None


@dataclass
class ImportResult:
    holdings: Portfolio
    trades: list[RealizedTrade] | None
    settings: LedgerSettings | None


def export_document(holdings: HoldingsStore, ledger: TradeLedger) -> JSONDict:
    """Snapshot of every blob under the backup schema tag."""
    return {
        "schema": BACKUP_SCHEMA,
        "exported_at": now_iso(),
        "holdings": holdings.load().to_dict(),
        "trades": [t.to_dict() for t in ledger.load_trades()],
        "settings": ledger.load_settings().to_dict(),
    }


def _is_bare_holdings(document: dict[str, Any]) -> bool:
    return "schema" not in document and any(key in document for key in _HOLDINGS_ARRAYS)


def import_document(
    document: Any,
    holdings: HoldingsStore,
    ledger: TradeLedger,
    bus: EventBus | None = None,
) -> ImportResult:
    """Replace stored blobs with the contents of *document*.

    Raises:
        ImportFormatError: Unknown schema tag or missing / mistyped top-level keys.
    """
    if not isinstance(document, dict):
        raise ImportFormatError("Import document must be a JSON object")

    try:
        if _is_bare_holdings(document):
            _HoldingsShape.model_validate(document)
            portfolio = Portfolio.from_dict(document)
            holdings.save(portfolio)
            logger.info(f"Imported holdings document ({len(portfolio.stocks)} stocks, {len(portfolio.crypto)} coins)")
            _notify(bus)
            return ImportResult(holdings=portfolio, trades=None, settings=None)

        tag = document.get("schema")
        if tag != BACKUP_SCHEMA:
            raise ImportFormatError(f"Unsupported schema tag: {tag!r}")
        shape = _BackupShape.model_validate({**document, "schema_tag": tag})

        portfolio = Portfolio.from_dict(document["holdings"])
        trades = [RealizedTrade.from_dict(item) for item in shape.trades]
        for trade in trades:
            trade.date = normalize_date(trade.date)
        settings = (
            LedgerSettings.from_dict(shape.settings, defaults=ledger.default_settings)
            if shape.settings is not None
            else None
        )
    except PydanticValidationError as e:
        raise ImportFormatError(f"Import document has an unexpected shape: {e}") from e
    except RumoError as e:
        if isinstance(e, ImportFormatError):
            raise
        raise ImportFormatError(f"Import document has invalid records: {e}") from e

    holdings.save(portfolio)
    ledger.save_trades(trades)
    if settings is not None:
        ledger.save_settings(settings)
    logger.info(f"Imported backup with {len(trades)} sales")
    _notify(bus)
    return ImportResult(holdings=portfolio, trades=trades, settings=settings)


def _notify(bus: EventBus | None) -> None:
    if bus is not None:
        bus.emit_sync(data_changed(SOURCE_IMPORT))


def export_to_file(path: PathLike, holdings: HoldingsStore, ledger: TradeLedger) -> Path:
    """Write a backup document as indented JSON. Returns the written path."""
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(export_document(holdings, ledger), indent=2, ensure_ascii=False), encoding="utf-8")
    return target


def import_from_file(
    path: PathLike,
    holdings: HoldingsStore,
    ledger: TradeLedger,
    bus: EventBus | None = None,
) -> ImportResult:
    """Read a JSON file and import it.

    Raises:
        ImportFormatError: The file is not valid JSON or has the wrong shape.
        FileNotFoundError: *path* does not exist.
    """
    text = Path(path).expanduser().read_text(encoding="utf-8")
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"{path} is not valid JSON: {e}") from e
    return import_document(document, holdings, ledger, bus)


def load_demo(path: PathLike, holdings: HoldingsStore, ledger: TradeLedger, bus: EventBus | None = None) -> ImportResult:
    """Load a demo dataset; same rules as :func:`import_from_file`."""
    logger.info(f"Loading demo dataset from {path}")
    return import_from_file(path, holdings, ledger, bus)
