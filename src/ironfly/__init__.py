"""
ironfly - Options market data and iron butterfly strike selection.

Acquires options market data from a derivatives exchange, normalizes it into
canonical contracts and order books, selects iron butterfly strikes and places
signed orders.
"""

__version__ = "0.1.0"
