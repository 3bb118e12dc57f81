"""Cross-platform prediction-market arbitrage scanner."""

from .models import ArbitrageOpportunity, MarketRecord, Outcome, Platform
from .scanner import ArbitrageScanner

__version__ = "0.1.0"

__all__ = [
    "ArbitrageOpportunity",
    "ArbitrageScanner",
    "MarketRecord",
    "Outcome",
    "Platform",
]
