"""
Price oracle: actual direction per asset at scoring time
"""
from typing import Dict, Mapping, Optional

# Placeholder outcomes until a live price snapshot is wired in
STATIC_DIRECTIONS: Dict[str, str] = {
    "BTC": "up",
    "ETH": "down",
    "SUI": "up",
    "SOL": "down",
    "BNB": "up",
    "XRP": "down",
    "ADA": "up",
    "DOGE": "down",
    "AVAX": "up",
    "MATIC": "down",
}


class StaticPriceOracle:
    """Oracle backed by a fixed direction table"""

    def __init__(self, directions: Optional[Mapping[str, str]] = None):
        self._directions = dict(STATIC_DIRECTIONS if directions is None else directions)

    def get_actual_directions(self) -> Dict[str, str]:
        """Snapshot of asset symbol -> 'up'/'down'"""
        return dict(self._directions)
