from datetime import datetime, timedelta, timezone

import pytest

from conftest import FakeRemoteStore
from trivia_quiz.core.errors import RemoteServiceError, StorageReadError, WriteError
from trivia_quiz.core.models import AggregateStats
from trivia_quiz.core.services.persistence_gateway import PersistenceGateway, RemoteAttemptStore


class BrokenLocalStore:
    name = "local"

    def append(self, score, recorded_at, duration_seconds):
        raise WriteError("disk full")

    def aggregate(self):
        raise StorageReadError("unreadable")

    def history(self, limit=None):
        raise StorageReadError("unreadable")


def test_no_attempts_gives_zero_stats(local_store):
    stats = PersistenceGateway(local_store).stats()

    assert stats == AggregateStats(count=0, max_score=0, average=0.0, min_score=0)
    assert stats.average_display == "0.0"


def test_local_attempts_aggregate(local_store):
    gateway = PersistenceGateway(local_store)
    for score in (30, 50, 40):
        gateway.record_attempt(score, duration_seconds=12.5)

    stats = gateway.stats()

    assert stats.count == 3
    assert stats.max_score == 50
    assert stats.min_score == 30
    assert stats.average_display == "40.0"


def test_local_history_is_newest_first(local_store):
    now = datetime.now(timezone.utc)
    local_store.append(10, now - timedelta(minutes=5), None)
    local_store.append(20, now, None)

    history = PersistenceGateway(local_store).history()

    assert [record.score for record in history] == [20, 10]
    assert [record.score for record in PersistenceGateway(local_store).history(limit=1)] == [20]


def test_negative_score_is_rejected(local_store):
    with pytest.raises(ValueError):
        PersistenceGateway(local_store).record_attempt(-10)


def test_remote_write_failure_falls_back_to_local(local_store):
    remote = FakeRemoteStore(fail_writes=True)
    gateway = PersistenceGateway(local_store, remote)

    record = gateway.record_attempt(70)

    assert record.score == 70
    assert remote.appended == []
    assert gateway.stats().count == 1
    assert gateway.stats().max_score == 70


def test_remote_write_succeeds(local_store):
    remote = FakeRemoteStore(stats=AggregateStats(count=5, max_score=90, average=55.0, min_score=10))
    gateway = PersistenceGateway(local_store, remote)

    gateway.record_attempt(60)

    assert remote.appended == [60]
    assert local_store.aggregate().count == 0
    assert gateway.stats().count == 5


def test_both_backings_failing_raises_write_error():
    gateway = PersistenceGateway(BrokenLocalStore(), FakeRemoteStore(fail_writes=True))

    with pytest.raises(WriteError):
        gateway.record_attempt(30)


def test_unreadable_stats_degrade_to_zero():
    assert PersistenceGateway(BrokenLocalStore()).stats() == AggregateStats()


def test_unreachable_remote_is_probed_once(local_store):
    remote = FakeRemoteStore(reachable=False)
    gateway = PersistenceGateway(local_store, remote)

    assert gateway.select_backing() == "local"
    gateway.record_attempt(20)
    gateway.stats()

    assert remote.probe_calls == 1
    assert remote.appended == []
    assert gateway.backing == "local"


def test_corrupt_local_history_blocks_writes(local_store):
    local_store._settings.setValue(local_store._key, "{not json")

    with pytest.raises(WriteError):
        PersistenceGateway(local_store).record_attempt(10)


def test_clear_local_history(local_store):
    gateway = PersistenceGateway(local_store)
    gateway.record_attempt(10)

    gateway.clear_local_history()

    assert gateway.stats().count == 0


class DummySupabaseClient:
    def __init__(self, inserted=None, stats=None, rows=None):
        self.inserted = inserted
        self.stats = stats
        self.rows = rows or []

    def probe(self):
        return True

    def insert_attempt(self, score, total_time=None):
        return self.inserted

    def fetch_global_stats(self):
        return self.stats

    def fetch_attempts(self, limit=None):
        return self.rows[:limit] if limit is not None else list(self.rows)


def test_stats_after_failed_remote_write_include_the_attempt(local_store):
    remote = FakeRemoteStore(fail_writes=True, stats=AggregateStats(count=4, max_score=40, average=25.0, min_score=10))
    gateway = PersistenceGateway(local_store, remote)
    assert gateway.backing == "remote"

    gateway.record_attempt(90)

    assert gateway.backing == "local"
    assert gateway.stats() == AggregateStats(count=1, max_score=90, average=90.0, min_score=90)
    assert [record.score for record in gateway.history()] == [90]


def test_scalar_stats_payload_degrades_to_local(local_store):
    store = RemoteAttemptStore(DummySupabaseClient(stats=7))
    gateway = PersistenceGateway(local_store, store)

    with pytest.raises(RemoteServiceError):
        store.aggregate()
    assert gateway.stats() == AggregateStats()


def test_insert_row_without_score_keeps_submitted_score():
    store = RemoteAttemptStore(DummySupabaseClient(inserted={"score": None}))

    record = store.append(40, datetime(2026, 3, 2, tzinfo=timezone.utc), None)

    assert record.score == 40
    assert record.recorded_at == datetime(2026, 3, 2, tzinfo=timezone.utc)


@pytest.mark.parametrize("inserted", [{"score": "many"}, ["row"], 7, None])
def test_malformed_insert_payload_falls_back_to_local(local_store, inserted):
    store = RemoteAttemptStore(DummySupabaseClient(inserted=inserted))
    gateway = PersistenceGateway(local_store, store)

    with pytest.raises(RemoteServiceError):
        store.append(40, datetime.now(timezone.utc), None)
    assert gateway.record_attempt(40).score == 40
    assert local_store.aggregate().count == 1


def test_remote_history_skips_rows_without_timestamp(local_store):
    rows = [
        {"id": 2, "score": 30, "total_time": 12.5, "created_at": "2026-03-02T10:00:00Z"},
        {"id": 1, "score": 20, "created_at": None},
    ]
    gateway = PersistenceGateway(local_store, RemoteAttemptStore(DummySupabaseClient(rows=rows)))

    history = gateway.history()

    assert [(record.score, record.duration_seconds) for record in history] == [(30, 12.5)]
    assert history[0].recorded_at == datetime(2026, 3, 2, 10, tzinfo=timezone.utc)


def test_malformed_remote_history_uses_local(local_store):
    local_store.append(15, datetime.now(timezone.utc), None)
    gateway = PersistenceGateway(local_store, RemoteAttemptStore(DummySupabaseClient(rows=[3])))

    assert [record.score for record in gateway.history()] == [15]
