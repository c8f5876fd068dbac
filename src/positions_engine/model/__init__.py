"""Asset and instrument identifiers."""

from .asset import Asset
from .instrument import Category, Instrument, spot_symbol

__all__ = ["Asset", "Category", "Instrument", "spot_symbol"]
