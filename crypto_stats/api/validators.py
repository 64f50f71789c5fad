"""
Custom validators for API parameters.
"""

from ..shared.coins import is_valid_coin, valid_coins_display
from .errors import InvalidCoinError


def validate_coin(coin: str | None) -> str:
    """
    Validate that a coin identifier was supplied and is supported.

    Args:
        coin: Raw value of the ``coin`` query parameter

    Returns:
        The validated coin identifier

    Raises:
        InvalidCoinError: If the coin is missing, empty or not in the valid set.
            The message always lists the valid coins.
    """
    if not coin:
        raise InvalidCoinError(
            f'Query parameter "coin" is required. Use one of: {valid_coins_display()}'
        )

    if not is_valid_coin(coin):
        raise InvalidCoinError(
            f'"{coin}" is not a valid coin. Use one of: {valid_coins_display()}'
        )

    return coin
