"""
Tests for eggpool/coordinator.py — lock-free append with conflict retries.

Concurrency is exercised against InMemoryDocumentStore, which yields to the
event loop between every read and write so gathered appends really race.
"""
import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from eggpool.coordinator import AppendCoordinator, AppendState
from utils.errors import ConflictError, ErrorKind, TransportError
from eggpool.records import Document, EggRecord
from eggpool.store import InMemoryDocumentStore, VersionedDocumentStore

from conftest import make_record


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)
        await asyncio.sleep(0)


class InterferingStore(InMemoryDocumentStore):
    """Commits another trainer's egg right after the first read."""

    def __init__(self, records=None):
        super().__init__(records)
        self.interfered = False

    async def read(self):
        document = await super().read()
        if not self.interfered:
            self.interfered = True
            self.attempt_write(self.token, self.records + (make_record(99, "Gary"),),
                               "Add egg from Gary (Pikachu)")
        return document


class AlwaysConflictStore(VersionedDocumentStore):
    def __init__(self):
        self.reads = 0
        self.writes = 0

    async def read(self):
        self.reads += 1
        return Document(token=f"t{self.reads}")

    async def write(self, document, token, description):
        self.writes += 1
        raise ConflictError(f"sha {token} does not match", status=409)


class FailingWriteStore(AlwaysConflictStore):
    async def write(self, document, token, description):
        self.writes += 1
        raise TransportError("Bad credentials", status=401)


class TestAppendSuccess:
    def test_single_append(self):
        store = InMemoryDocumentStore()
        coordinator = AppendCoordinator(store, sleep=RecordingSleep())
        result = asyncio.run(coordinator.append(make_record(1), "add"))
        assert result.ok
        assert result.attempts == 1
        assert (result.reads, result.writes) == (1, 1)
        assert result.token == store.token
        assert [r.id for r in result.document.records] == ["rec-1"]
        assert coordinator.state is AppendState.SUCCESS

    def test_conflict_then_success(self, sample_eggs):
        store = InterferingStore(sample_eggs)
        sleep = RecordingSleep()
        coordinator = AppendCoordinator(store, backoff_seconds=0.5, sleep=sleep)

        result = asyncio.run(coordinator.append(make_record(1), "add"))

        assert result.ok
        assert result.attempts == 2
        assert (result.reads, result.writes) == (2, 2)
        assert sleep.delays == [1.0]
        assert [r.id for r in store.records] == ["1", "2", "rec-99", "rec-1"]
        assert store.conflicts == 1

    def test_concurrent_appends_all_land(self):
        store = InMemoryDocumentStore()
        n = 5
        coordinator = AppendCoordinator(store, max_attempts=n,
                                        backoff_seconds=0.001)

        async def scenario():
            return await asyncio.gather(*(
                coordinator.append(make_record(i), f"add {i}") for i in range(n)
            ))

        results = asyncio.run(scenario())

        assert all(r.ok for r in results)
        ids = [r.id for r in store.records]
        assert sorted(ids) == sorted(f"rec-{i}" for i in range(n))
        assert len(set(ids)) == n
        assert store.conflicts > 0
        assert len(store.revisions) == n

    def test_state_observers(self):
        seen, per_call = [], []
        store = InterferingStore()
        coordinator = AppendCoordinator(store, sleep=RecordingSleep(),
                                        on_state=lambda s, a: seen.append((s, a)))
        asyncio.run(coordinator.append(make_record(1), "add",
                                       on_state=lambda s, a: per_call.append(s)))
        assert seen == [
            (AppendState.READING, 1), (AppendState.WRITING, 1),
            (AppendState.RETRYING, 2), (AppendState.READING, 2),
            (AppendState.WRITING, 2), (AppendState.SUCCESS, 2),
        ]
        assert per_call == [s for s, _ in seen]


class TestAppendFailure:
    def test_exhaustion_keeps_last_conflict_message(self):
        store = AlwaysConflictStore()
        sleep = RecordingSleep()
        coordinator = AppendCoordinator(store, max_attempts=3,
                                        backoff_seconds=0.5, sleep=sleep)

        result = asyncio.run(coordinator.append(make_record(1), "add"))

        assert not result.ok
        assert result.attempts == 3
        assert (store.reads, store.writes) == (3, 3)
        assert result.error.kind is ErrorKind.CONFLICT
        assert result.message == "sha t3 does not match"
        assert sleep.delays == [1.0, 1.5]
        assert coordinator.state is AppendState.FAILED

    def test_transport_error_not_retried(self):
        store = FailingWriteStore()
        sleep = RecordingSleep()
        coordinator = AppendCoordinator(store, sleep=sleep)

        result = asyncio.run(coordinator.append(make_record(1), "add"))

        assert not result.ok
        assert result.attempts == 1
        assert (store.reads, store.writes) == (1, 1)
        assert result.message == "Bad credentials"
        assert result.error.kind is ErrorKind.TRANSPORT
        assert sleep.delays == []

    def test_read_failure_skips_write(self):
        class BrokenRead(AlwaysConflictStore):
            async def read(self):
                self.reads += 1
                raise TransportError("GitHub API error: 500", status=500)

        store = BrokenRead()
        result = asyncio.run(AppendCoordinator(store).append(make_record(1), "add"))
        assert not result.ok
        assert (result.reads, result.writes) == (1, 0)
        assert store.writes == 0

    def test_single_attempt_budget(self):
        store = AlwaysConflictStore()
        result = asyncio.run(
            AppendCoordinator(store, max_attempts=1).append(make_record(1), "add"))
        assert not result.ok
        assert store.writes == 1


class TestBackoff:
    def test_linear_schedule(self):
        coordinator = AppendCoordinator(InMemoryDocumentStore(), backoff_seconds=0.5)
        assert [coordinator.backoff_for(a) for a in (1, 2, 3)] == [0.0, 1.0, 1.5]

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            AppendCoordinator(InMemoryDocumentStore(), max_attempts=0)
