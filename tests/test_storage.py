"""
Tests for the snapshot storage.
"""

import random
from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from crypto_stats.storage.models import Snapshot


class TestSnapshotModel:
    """Test cases for the Snapshot model."""

    def test_rejects_unknown_coin(self):
        """Test that only coins from the valid set are accepted."""
        with pytest.raises(ValidationError, match="coin_id must be one of"):
            Snapshot(
                coin_id="dogecoin",
                price=0.1,
                market_cap=1.0,
                change_24h=0.0,
                observed_at=datetime.now(UTC),
            )

    def test_rejects_negative_price(self):
        """Test that prices must be non-negative."""
        with pytest.raises(ValidationError):
            Snapshot(
                coin_id="bitcoin",
                price=-1.0,
                market_cap=1.0,
                change_24h=0.0,
                observed_at=datetime.now(UTC),
            )

    def test_allows_negative_change(self, snapshot_factory):
        """Test that the 24h change may be negative."""
        snapshot = snapshot_factory(change_24h=-12.5)
        assert snapshot.change_24h == -12.5

    def test_is_immutable(self, snapshot_factory):
        """Test that snapshots cannot be modified after creation."""
        snapshot = snapshot_factory()
        with pytest.raises(ValidationError):
            snapshot.price = 1.0

    def test_naive_timestamp_is_utc(self):
        """Test that naive timestamps are interpreted as UTC."""
        snapshot = Snapshot(
            coin_id="bitcoin",
            price=1.0,
            market_cap=1.0,
            change_24h=0.0,
            observed_at=datetime(2025, 1, 15, 10, 0),
        )
        assert snapshot.observed_at == datetime(2025, 1, 15, 10, 0, tzinfo=UTC)

    def test_aware_timestamp_is_normalized(self):
        """Test that aware timestamps are converted to UTC."""
        est = timezone(timedelta(hours=-5))
        snapshot = Snapshot(
            coin_id="bitcoin",
            price=1.0,
            market_cap=1.0,
            change_24h=0.0,
            observed_at=datetime(2025, 1, 15, 10, 0, tzinfo=est),
        )
        assert snapshot.observed_at.utcoffset() == timedelta(0)
        assert snapshot.observed_at.hour == 15


class TestSnapshotStorage:
    """Test cases for SnapshotStorage class."""

    @pytest.mark.asyncio
    async def test_save_and_retrieve_snapshot(
        self, temp_storage, seed_snapshots, sample_snapshots
    ):
        """Test saving and retrieving snapshots."""
        await seed_snapshots(sample_snapshots)

        btc = await temp_storage.get_latest_snapshot("bitcoin")
        assert btc is not None
        assert btc.coin_id == "bitcoin"
        assert btc.price == 45000.0
        assert btc.market_cap == 880_000_000_000.0
        assert btc.change_24h == 1.5
        assert btc.observed_at == sample_snapshots[0].observed_at

        matic = await temp_storage.get_latest_snapshot("matic-network")
        assert matic is not None
        assert matic.change_24h == -2.3

    @pytest.mark.asyncio
    async def test_save_single_snapshot(self, temp_storage, snapshot_factory):
        """Test appending one snapshot at a time."""
        await temp_storage.save_snapshot(snapshot_factory(price=100.0, minutes=0))
        await temp_storage.save_snapshot(snapshot_factory(price=200.0, minutes=1))

        snapshots = await temp_storage.get_snapshots("bitcoin")
        assert [s.price for s in snapshots] == [200.0, 100.0]

    @pytest.mark.asyncio
    async def test_latest_snapshot_missing(self, temp_storage):
        """Test that a coin without data returns None."""
        assert await temp_storage.get_latest_snapshot("ethereum") is None
        assert await temp_storage.get_snapshots("ethereum") == []

    @pytest.mark.asyncio
    async def test_latest_ignores_insertion_order(
        self, temp_storage, seed_snapshots, snapshot_factory
    ):
        """Test that the latest snapshot is chosen by observed_at only."""
        await seed_snapshots(
            [
                snapshot_factory(price=300.0, minutes=30),
                snapshot_factory(price=100.0, minutes=10),
                snapshot_factory(price=500.0, minutes=50),
                snapshot_factory(price=200.0, minutes=20),
            ]
        )

        latest = await temp_storage.get_latest_snapshot("bitcoin")
        assert latest is not None
        assert latest.price == 500.0

    @pytest.mark.asyncio
    async def test_ordering_across_timezones(self, temp_storage, seed_snapshots):
        """Test that snapshots from different offsets order chronologically."""
        est = timezone(timedelta(hours=-5))
        # 10:00 EST is 15:00 UTC, later than 14:00 UTC
        await seed_snapshots(
            [
                Snapshot(
                    coin_id="bitcoin",
                    price=2.0,
                    market_cap=0.0,
                    change_24h=0.0,
                    observed_at=datetime(2025, 1, 15, 10, 0, tzinfo=est),
                ),
                Snapshot(
                    coin_id="bitcoin",
                    price=1.0,
                    market_cap=0.0,
                    change_24h=0.0,
                    observed_at=datetime(2025, 1, 15, 14, 0, tzinfo=UTC),
                ),
            ]
        )

        latest = await temp_storage.get_latest_snapshot("bitcoin")
        assert latest is not None
        assert latest.price == 2.0

    @pytest.mark.asyncio
    async def test_sub_second_ordering(self, temp_storage, seed_snapshots):
        """Test ordering of snapshots that differ by microseconds."""
        base = datetime(2025, 1, 15, 10, 0, tzinfo=UTC)
        await seed_snapshots(
            [
                Snapshot(
                    coin_id="bitcoin",
                    price=2.0,
                    market_cap=0.0,
                    change_24h=0.0,
                    observed_at=base + timedelta(microseconds=1),
                ),
                Snapshot(
                    coin_id="bitcoin",
                    price=1.0,
                    market_cap=0.0,
                    change_24h=0.0,
                    observed_at=base,
                ),
            ]
        )

        snapshots = await temp_storage.get_snapshots("bitcoin")
        assert [s.price for s in snapshots] == [2.0, 1.0]

    @pytest.mark.asyncio
    async def test_get_snapshots_limit_and_order(
        self, temp_storage, seed_snapshots, snapshot_factory
    ):
        """Test that limits apply after sorting newest first."""
        snapshots = [snapshot_factory(price=float(i), minutes=i) for i in range(20)]
        random.Random(7).shuffle(snapshots)
        await seed_snapshots(snapshots)

        recent = await temp_storage.get_snapshots("bitcoin", limit=5)
        assert [s.price for s in recent] == [19.0, 18.0, 17.0, 16.0, 15.0]

        everything = await temp_storage.get_snapshots("bitcoin")
        assert len(everything) == 20

    @pytest.mark.asyncio
    async def test_snapshots_isolated_per_coin(
        self, temp_storage, seed_snapshots, snapshot_factory
    ):
        """Test that queries only return the requested coin."""
        await seed_snapshots(
            [
                snapshot_factory("bitcoin", 45000.0, minutes=1),
                snapshot_factory("ethereum", 3000.0, minutes=2),
                snapshot_factory("ethereum", 3100.0, minutes=3),
            ]
        )

        eth = await temp_storage.get_snapshots("ethereum")
        assert [s.price for s in eth] == [3100.0, 3000.0]
        assert all(s.coin_id == "ethereum" for s in eth)

