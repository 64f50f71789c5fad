"""
Fixed set of coins tracked and served by the application.
"""

from typing import Final

VALID_COINS: Final[tuple[str, ...]] = ("bitcoin", "matic-network", "ethereum")


def is_valid_coin(coin: str | None) -> bool:
    """Check whether a coin identifier belongs to the valid coin set."""
    return coin in VALID_COINS


def valid_coins_display() -> str:
    """Comma-separated list of valid coins for error messages."""
    return ", ".join(VALID_COINS)
