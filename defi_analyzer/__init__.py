"""DeFi swap analyzer: compare a wallet's DEX swaps against aggregator routes."""

__version__ = "1.0.0"
