"""
Append-only storage for coin snapshots using async SQLite.
"""

import logging
from datetime import UTC, datetime

import aiosqlite

from .models import Snapshot
from .settings import storage_settings

logger = logging.getLogger(__name__)


def _format_timestamp(value: datetime) -> str:
    # Fixed precision keeps lexicographic order equal to chronological order
    return value.astimezone(UTC).isoformat(timespec="microseconds")


class SnapshotStorage:
    """Async SQLite-based storage for coin snapshots.

    Snapshots are only ever inserted; every read is ordered by
    ``observed_at`` descending.
    """

    def __init__(self, database_path: str | None = None):
        """Initialize the snapshot storage."""
        self.database_path = database_path or storage_settings.database_path
        self._connection: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Initialize the database connection and create tables."""
        await self._get_connection()
        await self._create_tables()

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create async database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(self.database_path)
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def _create_tables(self) -> None:
        """Create the snapshots table if it doesn't exist."""
        connection = await self._get_connection()

        await connection.execute("""
            CREATE TABLE IF NOT EXISTS snapshots (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                coin_id TEXT NOT NULL,
                price REAL NOT NULL,
                market_cap REAL NOT NULL,
                change_24h REAL NOT NULL,
                observed_at TEXT NOT NULL
            )
        """)

        await connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_coin_observed_at
            ON snapshots(coin_id, observed_at)
        """)

        await connection.commit()

    @staticmethod
    def _to_row(snapshot: Snapshot) -> tuple[str, float, float, float, str]:
        return (
            snapshot.coin_id,
            snapshot.price,
            snapshot.market_cap,
            snapshot.change_24h,
            _format_timestamp(snapshot.observed_at),
        )

    @staticmethod
    def _from_row(row: aiosqlite.Row) -> Snapshot:
        return Snapshot(
            coin_id=row["coin_id"],
            price=row["price"],
            market_cap=row["market_cap"],
            change_24h=row["change_24h"],
            observed_at=datetime.fromisoformat(row["observed_at"]),
        )

    async def save_snapshot(self, snapshot: Snapshot) -> None:
        """Append a single snapshot to the database."""
        connection = await self._get_connection()

        await connection.execute(
            """
            INSERT INTO snapshots (coin_id, price, market_cap, change_24h, observed_at)
            VALUES (?, ?, ?, ?, ?)
        """,
            self._to_row(snapshot),
        )

        await connection.commit()
        logger.debug(f"Saved snapshot for {snapshot.coin_id}")

    async def get_snapshots(
        self, coin_id: str, limit: int | None = None
    ) -> list[Snapshot]:
        """
        Get snapshots for a coin, newest first.

        Args:
            coin_id: The coin identifier to look up
            limit: Optional maximum number of snapshots to return.
                   If None, all snapshots for the coin are returned.

        Returns:
            Snapshots ordered by observed_at descending
        """
        connection = await self._get_connection()

        query = """
            SELECT coin_id, price, market_cap, change_24h, observed_at
            FROM snapshots
            WHERE coin_id = ?
            ORDER BY observed_at DESC
        """
        params: list[str | int] = [coin_id]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        async with connection.execute(query, params) as cursor:
            rows = await cursor.fetchall()

        return [self._from_row(row) for row in rows]

    async def get_latest_snapshot(self, coin_id: str) -> Snapshot | None:
        """Get the most recent snapshot for a coin, or None if there is none."""
        snapshots = await self.get_snapshots(coin_id, limit=1)
        return snapshots[0] if snapshots else None

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
