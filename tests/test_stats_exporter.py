"""Tests for claude_stats_exporter.services.stats_exporter."""

import time

import pytest

from claude_stats_exporter.services.active_time import ActiveTimeAccumulator
from claude_stats_exporter.services.conversation_deduper import ConversationDeduper
from claude_stats_exporter.services.delta_reconciler import DeltaReconciler
from claude_stats_exporter.services.gauge_state import GaugePublisher
from claude_stats_exporter.services.persistence import PersistenceStore
from claude_stats_exporter.services.stats_exporter import StatsExporter
from claude_stats_exporter.types import ActiveTimeState
from claude_stats_exporter.types.metrics import (
    ACTIVE_TIME,
    CONVERSATION_COUNT,
    MESSAGE_COUNT,
    SESSION_ACTIVE,
    SESSION_COUNT,
    SESSION_INFO,
    TOKEN_USAGE,
)
from helpers import RecordingSink, model_usage, touch_record, write_index, write_stats

NOW = 1_800_000_000.0


def _build(data_dir, sink):
    store = PersistenceStore(data_dir)
    accumulator = ActiveTimeAccumulator(store)
    accumulator.load()
    deduper = ConversationDeduper(store)
    deduper.load()
    gauges = GaugePublisher("host-1")
    sink.register_gauges(gauges.readings)
    return StatsExporter(
        data_dir=data_dir,
        sink=sink,
        reconciler=DeltaReconciler(sink, "host-1"),
        accumulator=accumulator,
        deduper=deduper,
        gauges=gauges,
        instance_id="host-1",
        active_window_seconds=3600,
    )


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def exporter(qapp, data_dir, sink):
    e = _build(data_dir, sink)
    yield e
    e.stop()


class TestSkippedCycle:
    def test_no_stats_skips_everything(self, exporter, sink, data_dir, project_dir):
        touch_record(project_dir, "s1", mtime=NOW - 10)
        skipped = []
        exporter.cycle_skipped.connect(skipped.append)

        assert exporter.run_cycle(now=NOW) is None
        assert sink.adds == []
        assert skipped == ["no-stats"]
        assert not (data_dir / ".exporter-seen-conversations.json").exists()

    def test_missing_stats_keeps_previous_state(self, exporter, sink, data_dir):
        write_stats(data_dir, sessions=5)
        exporter.run_cycle(now=NOW)
        (data_dir / "stats-cache.json").unlink()
        assert exporter.run_cycle(now=NOW + 30) is None

        write_stats(data_dir, sessions=7)
        sink.clear()
        exporter.run_cycle(now=NOW + 60)
        assert sink.total(SESSION_COUNT) == 2


class TestFirstCycle:
    def test_backfills_snapshot(self, exporter, sink, data_dir):
        write_stats(data_dir, sessions=3, messages=40, models={"opus": model_usage(input=100)})
        result = exporter.run_cycle(now=NOW)
        assert result.backfill is True
        assert sink.total(SESSION_COUNT) == 3
        assert sink.total(MESSAGE_COUNT) == 40
        assert sink.total(TOKEN_USAGE, model="opus", type="input") == 100

    def test_existing_conversations_marked_not_counted(self, exporter, sink, data_dir, project_dir):
        write_stats(data_dir, sessions=1)
        touch_record(project_dir, "old-1", mtime=NOW - 86400)
        touch_record(project_dir, "old-2", mtime=NOW - 86400)

        result = exporter.run_cycle(now=NOW)
        assert result.new_conversations == 0
        assert CONVERSATION_COUNT not in sink.names()
        store = PersistenceStore(data_dir)
        assert store.load_seen_ids() == {
            "-home-wiz-projects-myapp/old-1.jsonl",
            "-home-wiz-projects-myapp/old-2.jsonl",
        }

    def test_active_time_backfilled_once(self, qapp, data_dir, sink):
        PersistenceStore(data_dir).save_active_time(ActiveTimeState(100, NOW - 3600))
        write_stats(data_dir, sessions=1)
        exporter = _build(data_dir, sink)

        exporter.run_cycle(now=NOW)
        assert sink.total(ACTIVE_TIME) == 100
        exporter.run_cycle(now=NOW + 30)
        assert sink.total(ACTIVE_TIME) == 100


class TestSteadyState:
    def test_new_conversation_counted_once(self, exporter, sink, data_dir, project_dir):
        write_stats(data_dir, sessions=1)
        touch_record(project_dir, "old", mtime=NOW - 86400)
        exporter.run_cycle(now=NOW)

        touch_record(project_dir, "fresh", mtime=NOW + 20)
        result = exporter.run_cycle(now=NOW + 30)
        assert result.new_conversations == 1
        assert sink.total(CONVERSATION_COUNT) == 1

        exporter.run_cycle(now=NOW + 60)
        assert sink.total(CONVERSATION_COUNT) == 1

    def test_conversations_not_recounted_after_restart(self, qapp, data_dir, project_dir):
        write_stats(data_dir, sessions=1)
        touch_record(project_dir, "a", mtime=NOW - 86400)
        first_sink = RecordingSink()
        _build(data_dir, first_sink).run_cycle(now=NOW)

        touch_record(project_dir, "b", mtime=NOW + 10)
        second_sink = RecordingSink()
        second = _build(data_dir, second_sink)
        # Appeared while no exporter was running: folded into the baseline
        second.run_cycle(now=NOW + 30)
        assert second_sink.total(CONVERSATION_COUNT) == 0

        touch_record(project_dir, "c", mtime=NOW + 50)
        second.run_cycle(now=NOW + 60)
        assert second_sink.total(CONVERSATION_COUNT) == 1

    def test_deltas_only_after_first_cycle(self, exporter, sink, data_dir):
        write_stats(data_dir, sessions=3, messages=10)
        exporter.run_cycle(now=NOW)
        sink.clear()
        write_stats(data_dir, sessions=4, messages=8)
        result = exporter.run_cycle(now=NOW + 30)
        assert result.backfill is False
        assert sink.total(SESSION_COUNT) == 1
        assert sink.total(MESSAGE_COUNT) == 0


class TestActiveSessions:
    def test_active_time_accrues_between_active_polls(self, exporter, sink, data_dir, project_dir):
        write_stats(data_dir, sessions=1)
        touch_record(project_dir, "live", mtime=NOW - 5)

        exporter.run_cycle(now=NOW)
        exporter.run_cycle(now=NOW + 30)
        result = exporter.run_cycle(now=NOW + 60)
        assert result.active_seconds_added == 30
        assert sink.total(ACTIVE_TIME) == 60

    def test_no_active_sessions_no_time(self, exporter, sink, data_dir, project_dir):
        write_stats(data_dir, sessions=1)
        touch_record(project_dir, "idle", mtime=NOW - 7200)
        exporter.run_cycle(now=NOW)
        exporter.run_cycle(now=NOW + 30)
        assert ACTIVE_TIME not in sink.names()

    def test_gauges_published(self, exporter, sink, data_dir, project_dir):
        write_stats(data_dir, sessions=1)
        touch_record(project_dir, "s1", mtime=NOW - 5)
        touch_record(project_dir, "s2", mtime=NOW - 50)
        write_index(project_dir, [{"sessionId": "s1", "firstPrompt": "Refactor the parser"}])

        assert sink.gauge(SESSION_ACTIVE)[0].value == 0
        exporter.run_cycle(now=NOW)

        [count] = sink.gauge(SESSION_ACTIVE)
        assert count.value == 2
        assert count.labels == {"source": "host-1"}
        info = sink.gauge(SESSION_INFO)
        assert [r.labels["session_id"] for r in info] == ["s1", "s2"]
        assert info[0].labels["title"] == "Refactor the parser"
        assert info[0].labels["directory"] == "home/wiz/projects/myapp"
        assert all(r.value == 1 for r in info)


class TestReentrancy:
    def test_tick_during_cycle_is_dropped(self, exporter, sink, data_dir):
        write_stats(data_dir, sessions=1)
        skipped = []
        exporter.cycle_skipped.connect(skipped.append)
        nested = []

        def reenter(result):
            nested.append(exporter.run_cycle(now=NOW + 1))

        exporter.cycle_completed.connect(reenter)
        exporter.run_cycle(now=NOW)
        assert nested == [None]
        assert skipped == ["busy"]
        assert sink.total(SESSION_COUNT) == 1

    def test_flag_cleared_after_failure(self, exporter, sink, data_dir, project_dir, monkeypatch):
        write_stats(data_dir, sessions=1)
        touch_record(project_dir, "s1", mtime=NOW - 10)

        def boom(*args, **kwargs):
            raise RuntimeError("scan failed")

        monkeypatch.setattr(exporter._scanner, "scan", boom)
        with pytest.raises(RuntimeError):
            exporter.run_cycle(now=NOW)
        # Nothing was committed by the failed cycle
        assert sink.adds == []
        assert exporter._reconciler.initialized is False
        assert exporter._deduper.seen_count == 0

        monkeypatch.undo()
        result = exporter.run_cycle(now=NOW + 30)
        assert result is not None
        assert result.backfill is True
        assert sink.total(SESSION_COUNT) == 1
        assert sink.total(CONVERSATION_COUNT) == 0

    def test_failed_cycle_counts_deltas_once(self, exporter, sink, data_dir, project_dir, monkeypatch):
        write_stats(data_dir, sessions=1)
        exporter.run_cycle(now=NOW)
        sink.clear()

        write_stats(data_dir, sessions=3)
        touch_record(project_dir, "s2", mtime=NOW + 20)

        def boom(*args, **kwargs):
            raise RuntimeError("scan failed")

        monkeypatch.setattr(exporter._scanner, "scan", boom)
        with pytest.raises(RuntimeError):
            exporter.run_cycle(now=NOW + 30)
        assert sink.adds == []

        monkeypatch.undo()
        exporter.run_cycle(now=NOW + 60)
        assert sink.total(SESSION_COUNT) == 2
        assert sink.total(CONVERSATION_COUNT) == 1

    def test_tick_slot_swallows_errors(self, exporter, data_dir, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("unexpected")

        monkeypatch.setattr(exporter, "run_cycle", boom)
        exporter._on_tick()


class TestTimer:
    def test_start_runs_immediately_and_schedules(self, exporter, sink, data_dir):
        write_stats(data_dir, sessions=2)
        exporter.start(60_000)
        assert exporter.is_running
        assert sink.total(SESSION_COUNT) == 2
        exporter.stop()
        assert not exporter.is_running
