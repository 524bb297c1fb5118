"""
Tests for the concurrent snapshot reads
"""

import pytest

from insights.scope import Scope
from insights.snapshot import ReadResult, fetch_snapshot, read_collection


class _RecordingStore:
    """Wraps a store, records read arguments and fails the named reads."""

    def __init__(self, store, failing=()):
        self._store = store
        self.failing = set(failing)
        self.calls = {}

    def _call(self, name, *args, **kwargs):
        self.calls[name] = kwargs
        if name in self.failing:
            raise TimeoutError(f"{name} read timed out")
        return getattr(self._store, name)(*args, **kwargs)

    def fetch_sessions(self, **kwargs):
        return self._call("fetch_sessions", **kwargs)

    def fetch_enrollments(self, **kwargs):
        return self._call("fetch_enrollments", **kwargs)

    def fetch_attendance(self, **kwargs):
        return self._call("fetch_attendance", **kwargs)

    def fetch_payments(self, **kwargs):
        return self._call("fetch_payments", **kwargs)


class TestReadCollection:
    def test_success(self):
        result = read_collection("classes", lambda: ["a", "b"])
        assert result.ok
        assert result.records_or_empty() == ["a", "b"]

    def test_failure_is_captured(self, caplog):
        def boom():
            raise ValueError("bad row")

        result = read_collection("payments", boom)
        assert not result.ok
        assert isinstance(result.error, ValueError)
        assert result.records_or_empty() == []
        assert "Error fetching payments" in caplog.text

    def test_default_result_is_empty(self):
        assert ReadResult(name="attendance").records_or_empty() == []


class TestFetchSnapshot:
    def test_admin_reads_everything(self, store):
        collections = fetch_snapshot(store, Scope.everything())
        assert len(collections.sessions) == 4
        assert len(collections.enrollments) == 4
        assert len(collections.attendance) == 3
        # Only completed payments are read
        assert sorted(p.id for p in collections.payments) == ["P1", "P2", "P3"]

    def test_restricted_scope_filters_every_read(self, store):
        recording = _RecordingStore(store)
        scope = Scope.restricted_to({"S4"}, {"C3"}, trainer_id="T2", owner_ref="U2")

        collections = fetch_snapshot(recording, scope)

        assert [s.id for s in collections.sessions] == ["S4"]
        assert [e.id for e in collections.enrollments] == ["E4"]
        assert [a.id for a in collections.attendance] == ["A3"]
        assert [p.id for p in collections.payments] == ["P3"]
        assert recording.calls["fetch_payments"] == {"client_ids": frozenset({"C3"}), "status": "completed"}

    def test_empty_scope_reads_nothing(self, store):
        recording = _RecordingStore(store)
        collections = fetch_snapshot(recording, Scope.restricted_to(()))
        assert recording.calls == {}
        assert collections.sessions == []
        assert collections.payments == []

    @pytest.mark.parametrize("failing", [
        ["fetch_payments"],
        ["fetch_attendance", "fetch_enrollments"],
    ])
    def test_failed_reads_become_empty(self, store, failing, caplog):
        recording = _RecordingStore(store, failing=failing)

        collections = fetch_snapshot(recording, Scope.everything(), max_workers=2)

        assert len(collections.sessions) == 4
        for name in failing:
            attribute = name.replace("fetch_", "")
            assert getattr(collections, attribute) == []
        assert "timed out" in caplog.text
