"""Tests for the ordered, day-grouped history list."""

import random

from request_history.persistence.models import HistoryRecord
from request_history.ui.ordered_list import ChangeKind, ListChange, OrderedHistoryList
from request_history.ui.time_logic import today_key

HOUR = 3600 * 1000
DAY = 24 * HOUR


class TestBulkAppend:
    """Page merges."""

    def test_two_records_today(self, make_record, now_ms):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms), make_record(2, now_ms - 1000)], now_ms)

        first, second = history.records
        assert first.id == "1"
        assert first.day_key == today_key(now_ms)
        assert second.day_key == today_key(now_ms)
        assert first.has_header is True
        assert first.header == "Today"
        assert second.has_header is False

    def test_sorts_incoming_batch(self, make_record, now_ms, yesterday_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append(
            [make_record("old", yesterday_ms), make_record("new", now_ms)], now_ms
        )
        assert [r.id for r in history] == ["new", "old"]
        invariants(history.records)

    def test_keeps_valid_timestamps(self, now_ms):
        record = HistoryRecord(id="a", created_at=now_ms - 5000, updated_at=now_ms - 1000)
        OrderedHistoryList().bulk_append([record], now_ms)
        assert record.created_at == now_ms - 5000
        assert record.updated_at == now_ms - 1000

    def test_seam_same_day_clears_header(self, make_record, now_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms), make_record(2, now_ms - HOUR)], now_ms)
        history.bulk_append([make_record(3, now_ms - 2 * HOUR)], now_ms)

        assert history[2].has_header is False
        assert history[2].header is None
        invariants(history.records)

    def test_seam_new_day_keeps_header(self, make_record, now_ms, yesterday_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms)], now_ms)
        history.bulk_append([make_record(2, yesterday_ms)], now_ms)

        assert history[1].has_header is True
        assert history[1].header == "Yesterday"
        invariants(history.records)

    def test_drops_seam_duplicate(self, make_record, now_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms), make_record(2, now_ms - HOUR)], now_ms)
        changes = history.bulk_append(
            [make_record(2, now_ms - HOUR), make_record(3, now_ms - 2 * HOUR)], now_ms
        )

        assert [r.id for r in history] == ["1", "2", "3"]
        assert changes == [ListChange(ChangeKind.APPEND, 2, history[2])]
        invariants(history.records)

    def test_records_newer_than_tail_are_inserted(
        self, make_record, now_ms, yesterday_ms, older_ms, invariants
    ):
        history = OrderedHistoryList()
        history.bulk_append([make_record("old", older_ms)], now_ms)

        changes = history.bulk_append(
            [
                make_record("new", now_ms),
                make_record("mid", yesterday_ms),
                make_record("oldest", older_ms - HOUR),
            ],
            now_ms,
        )

        assert [r.id for r in history] == ["new", "mid", "old", "oldest"]
        assert [c.kind for c in changes] == [
            ChangeKind.APPEND,
            ChangeKind.INSERT,
            ChangeKind.INSERT,
        ]
        assert history[0].header == "Today"
        assert history[1].header == "Yesterday"
        assert history[3].has_header is False
        invariants(history.records)

    def test_empty_batch(self):
        assert OrderedHistoryList().bulk_append([]) == []


class TestUpsert:
    """Single record inserts and updates."""

    def test_insert_into_empty_list(self, make_record, now_ms):
        history = OrderedHistoryList()
        record = make_record(1, now_ms)
        changes = history.upsert(record, now_ms)

        assert changes == [ListChange(ChangeKind.INSERT, 0, record)]
        assert record.has_header is True
        assert record.header == "Today"
        assert record.today is True

    def test_newer_record_takes_header(self, make_record, now_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms - HOUR)], now_ms)
        old_first = history[0]
        newest = make_record(2, now_ms)

        changes = history.upsert(newest, now_ms)

        assert history[0] is newest
        assert newest.header == "Today"
        assert old_first.has_header is False
        assert changes == [
            ListChange(ChangeKind.INSERT, 0, newest),
            ListChange(ChangeKind.UPDATE, 1, old_first),
        ]
        invariants(history.records)

    def test_insert_inside_day_run_has_no_header(self, make_record, now_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms), make_record(3, now_ms - 2 * HOUR)], now_ms)
        middle = make_record(2, now_ms - HOUR)

        history.upsert(middle, now_ms)

        assert [r.id for r in history] == ["1", "2", "3"]
        assert middle.has_header is False
        invariants(history.records)

    def test_older_than_all_on_new_day_gets_header(self, make_record, now_ms, older_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms), make_record(2, now_ms - HOUR)], now_ms)
        oldest = make_record(3, older_ms)

        changes = history.upsert(oldest, now_ms)

        assert history[-1] is oldest
        assert oldest.has_header is True
        assert oldest.header.endswith("February 10, 2026")
        assert changes == [ListChange(ChangeKind.INSERT, 2, oldest)]
        invariants(history.records)

    def test_older_than_all_on_same_day(self, make_record, now_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms)], now_ms)
        oldest = make_record(2, now_ms - HOUR)
        history.upsert(oldest, now_ms)

        assert history[-1] is oldest
        assert oldest.has_header is False
        invariants(history.records)

    def test_new_day_between_days(self, make_record, now_ms, yesterday_ms, older_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms), make_record(3, older_ms)], now_ms)
        between = make_record(2, yesterday_ms)

        history.upsert(between, now_ms)

        assert between.header == "Yesterday"
        assert history[2].has_header is True
        invariants(history.records)

    def test_replaces_existing_id(self, make_record, now_ms, yesterday_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append(
            [make_record(1, now_ms), make_record(2, now_ms - HOUR), make_record(3, yesterday_ms)],
            now_ms,
        )
        updated = make_record(3, now_ms + 1000, created=yesterday_ms, method="POST")

        history.upsert(updated, now_ms)

        assert len(history) == 3
        assert [r.id for r in history] == ["3", "1", "2"]
        assert history.get("3") is updated
        assert history[0].method == "POST"
        assert history[0].updated_at == now_ms + 1000
        invariants(history.records)

    def test_replace_reports_remove_then_insert(self, make_record, now_ms):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms), make_record(2, now_ms - HOUR)], now_ms)
        old = history[1]
        updated = make_record(2, now_ms + 1000)

        changes = history.upsert(updated, now_ms)

        assert [c.kind for c in changes] == [
            ChangeKind.REMOVE,
            ChangeKind.INSERT,
            ChangeKind.UPDATE,
        ]
        assert changes[0].record is old

    def test_equal_timestamp_goes_after_existing(self, make_record, now_ms):
        history = OrderedHistoryList()
        history.bulk_append([make_record("a", now_ms)], now_ms)
        history.upsert(make_record("b", now_ms), now_ms)
        assert [r.id for r in history] == ["a", "b"]

    def test_out_of_range_timestamp_keeps_record(self, make_record, now_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record("a", now_ms - HOUR)], now_ms)

        history.upsert(make_record("a", 10 ** 16), now_ms)

        assert len(history) == 1
        assert history[0].updated_at == now_ms
        assert history[0].header == "Today"
        invariants(history.records)

    def test_fills_missing_timestamps(self, now_ms):
        history = OrderedHistoryList()
        record = HistoryRecord(id="x")
        history.upsert(record, now_ms)
        assert record.created_at == now_ms
        assert record.updated_at == now_ms


class TestRemove:
    """Single record removals."""

    def test_removing_header_moves_it(self, make_record, now_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record("A", now_ms), make_record("B", now_ms - HOUR)], now_ms)
        a_header = history[0].header

        changes = history.remove("A")

        assert len(history) == 1
        b = history[0]
        assert b.id == "B"
        assert b.has_header is True
        assert b.header == a_header
        assert b.today is True
        assert changes[0].kind is ChangeKind.REMOVE
        assert changes[1] == ListChange(ChangeKind.UPDATE, 0, b)
        invariants(history.records)

    def test_removing_last_of_day_leaves_next_day_alone(
        self, make_record, now_ms, yesterday_ms, invariants
    ):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms), make_record(2, yesterday_ms)], now_ms)

        changes = history.remove("1")

        assert history[0].header == "Yesterday"
        assert len(changes) == 1
        invariants(history.records)

    def test_removing_non_header(self, make_record, now_ms, invariants):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms), make_record(2, now_ms - HOUR)], now_ms)
        history.remove("2")
        assert [r.id for r in history] == ["1"]
        assert history[0].has_header is True
        invariants(history.records)

    def test_unknown_id(self, make_record, now_ms):
        history = OrderedHistoryList()
        history.bulk_append([make_record(1, now_ms)], now_ms)
        assert history.remove("nope") == []
        assert len(history) == 1
        assert history.index_of("nope") == -1


def test_clear(make_record, now_ms):
    history = OrderedHistoryList()
    history.bulk_append([make_record(1, now_ms)], now_ms)
    assert history.clear() == [ListChange(ChangeKind.RESET, 0)]
    assert len(history) == 0
    assert history.get("1") is None


def test_replace_swaps_contents(make_record, now_ms, invariants):
    history = OrderedHistoryList()
    history.bulk_append([make_record(1, now_ms)], now_ms)
    changes = history.replace([make_record(2, now_ms - HOUR)], now_ms)

    assert [r.id for r in history] == ["2"]
    assert history[0].header == "Today"
    assert changes[0].kind is ChangeKind.RESET
    invariants(history.records)


def test_random_operations_keep_invariants(now_ms, invariants):
    """Mixed page loads, upserts and removals over several days."""
    rng = random.Random(1234)
    history = OrderedHistoryList()

    page_start = now_ms
    for page in range(3):
        batch = [
            HistoryRecord(id=f"p{page}-{i}", updated_at=page_start - rng.randrange(0, DAY // 2))
            for i in range(8)
        ]
        history.bulk_append(batch, now_ms)
        page_start = min(r.updated_at for r in history) - 1
        invariants(history.records)

    ids = [r.id for r in history]
    for step in range(60):
        if rng.random() < 0.35 and ids:
            victim = rng.choice(ids)
            history.remove(victim)
            ids.remove(victim)
        else:
            record_id = rng.choice(ids) if ids and rng.random() < 0.5 else f"u{step}"
            updated = now_ms - rng.randrange(0, 5 * DAY)
            history.upsert(HistoryRecord(id=record_id, updated_at=updated), now_ms)
            if record_id not in ids:
                ids.append(record_id)
        invariants(history.records)
        assert len(history) == len(ids)
