"""
Read queries over the snapshot store.
"""

import logging
from typing import Final

from ..storage.snapshot_storage import SnapshotStorage
from .errors import InsufficientDataError, SnapshotNotFoundError, StorageError
from .models import DeviationResponse, StatsResponse
from .statistics import population_std_dev, round_half_away_from_zero
from .validators import validate_coin

DEVIATION_WINDOW: Final[int] = 100
MIN_DEVIATION_SAMPLES: Final[int] = 2
DEVIATION_DECIMALS: Final[int] = 2

INTERNAL_ERROR_MESSAGE: Final[str] = "Internal server error"

logger = logging.getLogger(__name__)


async def get_latest_stats(storage: SnapshotStorage, coin: str | None) -> StatsResponse:
    """
    Get the most recent price, market cap and 24h change for a coin.

    Raises:
        InvalidCoinError: Coin missing or unsupported
        SnapshotNotFoundError: No snapshot stored for the coin
        StorageError: The store failed
    """
    coin = validate_coin(coin)

    try:
        snapshot = await storage.get_latest_snapshot(coin)
    except Exception as e:
        logger.error(f"Error fetching stats: {e}", exc_info=e)
        raise StorageError(INTERNAL_ERROR_MESSAGE) from e

    if snapshot is None:
        raise SnapshotNotFoundError(f"No data found for {coin}.")

    return StatsResponse(
        price=snapshot.price,
        market_cap=snapshot.market_cap,
        change_24h=snapshot.change_24h,
    )


async def get_price_deviation(
    storage: SnapshotStorage, coin: str | None
) -> DeviationResponse:
    """
    Population standard deviation of the last 100 prices for a coin.

    Raises:
        InvalidCoinError: Coin missing or unsupported
        InsufficientDataError: Fewer than two snapshots stored
        StorageError: The store failed
    """
    coin = validate_coin(coin)

    try:
        snapshots = await storage.get_snapshots(coin, limit=DEVIATION_WINDOW)
    except Exception as e:
        logger.error(f"Error calculating standard deviation: {e}", exc_info=e)
        raise StorageError(INTERNAL_ERROR_MESSAGE) from e

    if len(snapshots) < MIN_DEVIATION_SAMPLES:
        raise InsufficientDataError(
            f"Not enough data to calculate standard deviation for {coin}."
        )

    deviation = population_std_dev([snapshot.price for snapshot in snapshots])
    return DeviationResponse(
        coin=coin,
        standard_deviation=round_half_away_from_zero(deviation, DEVIATION_DECIMALS),
    )
