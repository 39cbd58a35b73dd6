"""rumo: personal-finance tracker with a realized-trade ledger."""

__version__ = "0.1.0"
