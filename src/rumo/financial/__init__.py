"""Personal finance: holdings, realized-trade ledger and their synchronization."""

from .holdings import HoldingsStore
from .ledger import LedgerView, TradeLedger
from .models import (
    AssetClass,
    DividendRecord,
    Frequency,
    HoldingCrypto,
    HoldingStock,
    LedgerSettings,
    P2PLoan,
    ParkedFund,
    Portfolio,
    RealizedTrade,
)
from .sync import EditorSession, PortfolioSyncEngine, apply_trade, check_availability, rollback_trade, validate_trade

__all__ = [
    "AssetClass",
    "DividendRecord",
    "EditorSession",
    "Frequency",
    "HoldingCrypto",
    "HoldingStock",
    "HoldingsStore",
    "LedgerSettings",
    "LedgerView",
    "P2PLoan",
    "ParkedFund",
    "Portfolio",
    "PortfolioSyncEngine",
    "RealizedTrade",
    "TradeLedger",
    "apply_trade",
    "check_availability",
    "rollback_trade",
    "validate_trade",
]
