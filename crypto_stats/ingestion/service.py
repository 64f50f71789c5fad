"""
Ingestion service that fetches coin prices from the CoinGecko API.
"""

import asyncio
import logging
import sys
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import aiohttp
from pydantic import ValidationError

from ..shared.coins import VALID_COINS
from ..storage.models import Snapshot
from ..storage.snapshot_storage import SnapshotStorage
from .scheduler import IngestionScheduler
from .settings import ingestion_settings

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Raised when the price API returns an unusable response."""


def coalesce_number(value: Any) -> float:
    """Return the value as a float, or 0 when it is missing."""
    if value is None:
        return 0.0
    return float(value)


class SnapshotIngestor:
    """Fetches current prices for the tracked coins and stores snapshots."""

    def __init__(
        self,
        storage: SnapshotStorage | None = None,
        coins: Sequence[str] = VALID_COINS,
        api_url: str | None = None,
        request_timeout: float | None = None,
    ) -> None:
        """Initialize the ingestor."""
        self.storage = storage or SnapshotStorage()
        self.coins = list(coins)
        self.api_url = api_url or ingestion_settings.coingecko_api_url
        self.request_timeout = request_timeout or ingestion_settings.request_timeout
        self.vs_currency = ingestion_settings.vs_currency

    def _build_params(self) -> dict[str, str]:
        """Build query parameters for a single batched price request."""
        return {
            "ids": ",".join(self.coins),
            "vs_currencies": self.vs_currency,
            "include_market_cap": "true",
            "include_24hr_change": "true",
        }

    async def _fetch_prices(self) -> dict[str, Any]:
        """Fetch prices for all tracked coins in one request."""
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)

        async with (
            aiohttp.ClientSession() as session,
            session.get(
                self.api_url,
                params=self._build_params(),
                timeout=timeout,
            ) as response,
        ):
            response.raise_for_status()
            try:
                data = await response.json()
            except ValueError as e:
                raise UpstreamError(f"Invalid JSON from price API: {e}") from e

        if not isinstance(data, dict):
            raise UpstreamError(f"Unexpected price API response: {data!r}")

        logger.debug(f"API Response: {data}")
        return data

    def _parse_coin_entry(
        self, coin_id: str, entry: dict[str, Any], observed_at: datetime | None = None
    ) -> Snapshot:
        """Build a snapshot from one coin's entry, defaulting missing numbers to 0."""
        currency = self.vs_currency
        return Snapshot(
            coin_id=coin_id,
            price=coalesce_number(entry.get(currency)),
            market_cap=coalesce_number(entry.get(f"{currency}_market_cap")),
            change_24h=coalesce_number(entry.get(f"{currency}_24h_change")),
            observed_at=observed_at or datetime.now(UTC),
        )

    async def _store_coin(self, coin_id: str, entry: Any) -> Snapshot | None:
        """Build and save one coin's snapshot; failures are logged, not raised."""
        if not isinstance(entry, dict):
            logger.error(f"No data found for {coin_id}")
            return None

        try:
            snapshot = self._parse_coin_entry(coin_id, entry)
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning(
                f"Failed to parse price data for {coin_id}: {entry}, error: {e}"
            )
            return None

        try:
            await self.storage.save_snapshot(snapshot)
        except Exception as e:
            logger.error(f"Error saving data for {coin_id}: {e}")
            return None

        logger.info(f"Saved data for {coin_id}")
        return snapshot

    async def ingest(self) -> list[Snapshot]:
        """
        Run a single ingestion pass.

        Returns:
            Snapshots that were written. Upstream failures are logged and
            yield an empty list.
        """
        try:
            data = await self._fetch_prices()
        except (aiohttp.ClientError, asyncio.TimeoutError, UpstreamError) as e:
            logger.error(f"Error fetching cryptocurrency data: {e}")
            return []

        results = await asyncio.gather(
            *(self._store_coin(coin_id, data.get(coin_id)) for coin_id in self.coins)
        )
        return [snapshot for snapshot in results if snapshot is not None]

    @asynccontextmanager
    async def managed_lifecycle(self) -> AsyncGenerator[None, None]:
        """Async context manager for proper resource management."""
        try:
            await self.storage.initialize()
            yield
        finally:
            await self.storage.close()

    def create_scheduler(self) -> IngestionScheduler:
        """Create a repeating scheduler that runs this ingestor."""
        return IngestionScheduler(
            self.ingest,
            interval=ingestion_settings.ingestion_interval,
            align_to_wall_clock=ingestion_settings.align_to_wall_clock,
        )


async def run_once() -> list[Snapshot]:
    """Run a single ingestion pass against the configured storage."""
    ingestor = SnapshotIngestor()
    async with ingestor.managed_lifecycle():
        return await ingestor.ingest()


async def main() -> None:
    """Main entry point for the standalone ingestion service."""
    ingestor = SnapshotIngestor()
    async with ingestor.managed_lifecycle():
        scheduler = ingestor.create_scheduler()
        await scheduler.start()
        try:
            await scheduler.wait()
        finally:
            await scheduler.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Ingestion service stopped by user")
    except Exception as e:
        logger.error(f"Ingestion service failed: {e}")
        sys.exit(1)
