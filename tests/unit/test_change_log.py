"""Unit tests for ChangeLog: FIFO cap, copy-returning reads, read state, stats."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from kubemonitor.ledger.change_log import MAX_CHANGES, ChangeLog
from kubemonitor.models.changes import ChangeRecord, EventType


def _record(
    name: str = "foo",
    event_type: EventType = EventType.ADDED,
    resource_type: str = "pods",
    timestamp: datetime | None = None,
) -> ChangeRecord:
    record = ChangeRecord(
        event_type=event_type,
        resource_type=resource_type,
        namespace="ns",
        name=name,
        details="",
    )
    if timestamp is not None:
        record.timestamp = timestamp
    return record


# ---------------------------------------------------------------------------
# Cap
# ---------------------------------------------------------------------------


class TestCap:
    def test_default_cap_is_1000(self) -> None:
        assert ChangeLog().max_changes == MAX_CHANGES == 1000

    def test_1500_events_keep_most_recent_1000(self) -> None:
        """After 1500 appends the first record is event #501."""
        log = ChangeLog()
        for i in range(1, 1501):
            log.append(_record(name=f"pod-{i}"))

        records = log.list()
        assert len(records) == 1000
        assert records[0].name == "pod-501"
        assert records[-1].name == "pod-1500"

    def test_extend_applies_cap(self) -> None:
        log = ChangeLog(max_changes=3)
        log.extend(_record(name=str(i)) for i in range(5))
        assert [r.name for r in log.list()] == ["2", "3", "4"]

    def test_invalid_cap_rejected(self) -> None:
        with pytest.raises(ValueError):
            ChangeLog(max_changes=0)

    @given(count=st.integers(min_value=0, max_value=60), cap=st.integers(min_value=1, max_value=20))
    @settings(max_examples=50, deadline=None)
    def test_cap_keeps_tail_in_arrival_order(self, count: int, cap: int) -> None:
        log = ChangeLog(max_changes=cap)
        for i in range(count):
            log.append(_record(name=str(i)))
        expected = [str(i) for i in range(max(0, count - cap), count)]
        assert [r.name for r in log.list()] == expected


# ---------------------------------------------------------------------------
# Copy semantics
# ---------------------------------------------------------------------------


class TestListCopies:
    def test_mutating_returned_records_does_not_affect_log(self) -> None:
        log = ChangeLog()
        log.append(_record())

        snapshot = log.list()
        snapshot[0].is_read = True
        snapshot.clear()

        assert len(log) == 1
        assert log.list()[0].is_read is False


# ---------------------------------------------------------------------------
# Read state
# ---------------------------------------------------------------------------


class TestReadState:
    def test_mark_read_found_and_missing(self) -> None:
        log = ChangeLog()
        record = _record()
        log.append(record)

        assert log.mark_read(record.id) is True
        assert log.mark_read("does-not-exist") is False
        assert log.list()[0].is_read is True

    def test_mark_read_twice_keeps_record_read(self) -> None:
        log = ChangeLog()
        record = _record()
        log.append(record)

        assert log.mark_read(record.id) is True
        assert log.mark_read(record.id) is True
        assert log.list()[0].is_read is True

    def test_mark_all_read_does_not_double_count(self) -> None:
        log = ChangeLog()
        records = [_record(name=str(i)) for i in range(4)]
        log.extend(records)
        log.mark_read(records[1].id)

        assert log.mark_all_read() == 3
        assert log.mark_all_read() == 0
        assert all(r.is_read for r in log.list())


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


class TestStats:
    def test_single_pass_aggregates(self) -> None:
        start = datetime.now(tz=UTC)
        log = ChangeLog()
        log.append(_record(name="old", timestamp=start - timedelta(hours=2)))
        log.append(_record(name="a"))
        log.append(_record(name="b", event_type=EventType.MODIFIED, resource_type="deployments"))
        log.append(_record(name="c", event_type=EventType.DELETED))
        log.mark_read(log.list()[0].id)

        stats = log.stats(start)

        assert stats.total == 4
        assert stats.unread == 3
        assert stats.loaded_before_start == 1
        assert stats.current_session == 3
        assert stats.event_type_counts == {"ADDED": 2, "MODIFIED": 1, "DELETED": 1}
        assert stats.resource_type_counts == {"pods": 3, "deployments": 1}
        assert stats.uptime_seconds >= 0

    def test_stats_dict_layout(self) -> None:
        start = datetime.now(tz=UTC) - timedelta(seconds=3725)
        stats = ChangeLog().stats(start).to_dict()
        assert stats["total"] == 0
        assert stats["uptime"].startswith("1h2m")
        assert set(stats) == {
            "total",
            "unread",
            "loadedBeforeStart",
            "currentSession",
            "eventTypeCounts",
            "resourceTypeCounts",
            "startTime",
            "uptime",
        }


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrentAccess:
    def test_concurrent_appends_from_threads_lose_nothing(self) -> None:
        log = ChangeLog()
        workers, per_worker = 8, 100

        def _append_batch(worker: int) -> None:
            for i in range(per_worker):
                log.append(_record(name=f"{worker}-{i}"))
                if i % 10 == 0:
                    log.list()
                    log.stats(datetime.now(tz=UTC))

        with ThreadPoolExecutor(max_workers=workers) as pool:
            list(pool.map(_append_batch, range(workers)))

        records = log.list()
        assert len(records) == workers * per_worker
        assert len({r.id for r in records}) == workers * per_worker
        assert len({r.name for r in records}) == workers * per_worker

    async def test_concurrent_appends_from_tasks(self) -> None:
        log = ChangeLog()

        async def _append(i: int) -> None:
            await asyncio.sleep(0)
            log.append(_record(name=str(i)))

        await asyncio.gather(*(_append(i) for i in range(200)))

        records = log.list()
        assert len(records) == 200
        assert len({r.id for r in records}) == 200
