"""Bandwatch - volatility band scanner with rate-limited quote polling."""

__version__ = "0.1.0"
