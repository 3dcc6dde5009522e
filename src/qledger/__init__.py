"""
QLedger - Portfolio Accounting Core

Transaction ledgers, position valuation and portfolio P&L roll-up.
"""

from importlib.metadata import version

try:
    __version__ = version("qledger")
except Exception:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
]
