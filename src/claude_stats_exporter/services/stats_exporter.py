"""Poll cycle orchestrator: snapshot in, counter deltas and gauges out."""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from PySide6.QtCore import QObject, Signal, Slot, QTimer

from claude_stats_exporter.services.active_time import ActiveTimeAccumulator
from claude_stats_exporter.services.conversation_deduper import ConversationDeduper
from claude_stats_exporter.services.delta_reconciler import DeltaReconciler
from claude_stats_exporter.services.gauge_state import GaugePublisher
from claude_stats_exporter.services.session_directory import read_projects
from claude_stats_exporter.services.session_scanner import ActiveSessionScanner
from claude_stats_exporter.services.snapshot_reader import read_snapshot
from claude_stats_exporter.types.metrics import (
    ACTIVE_TIME,
    CONVERSATION_COUNT,
    Delta,
    MetricSink,
)
from claude_stats_exporter.types.sessions import ActiveSession

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    backfill: bool
    deltas: list[Delta] = field(default_factory=list)
    new_conversations: int = 0
    active_sessions: list[ActiveSession] = field(default_factory=list)
    active_seconds_added: int = 0


class StatsExporter(QObject):
    """Runs one reconciliation pass per timer tick.

    Owns no state of its own beyond the reentrancy flag; every piece of
    reconciliation state lives in the component objects passed in.
    """

    cycle_completed = Signal(object)  # CycleResult
    cycle_skipped = Signal(str)       # reason

    def __init__(
        self,
        data_dir: str | Path,
        sink: MetricSink,
        reconciler: DeltaReconciler,
        accumulator: ActiveTimeAccumulator,
        deduper: ConversationDeduper,
        gauges: GaugePublisher,
        instance_id: str,
        active_window_seconds: float = 3600,
        parent=None,
    ):
        super().__init__(parent)
        self._data_dir = Path(data_dir)
        self._sink = sink
        self._reconciler = reconciler
        self._accumulator = accumulator
        self._deduper = deduper
        self._gauges = gauges
        self._scanner = ActiveSessionScanner(self._data_dir)
        self._source = {"source": instance_id}
        self._window = active_window_seconds
        self._in_cycle = False

        self._timer = QTimer(self)
        self._timer.timeout.connect(self._on_tick)

    def start(self, poll_interval_ms: int):
        """Run one cycle now, then every ``poll_interval_ms``."""
        self._on_tick()
        self._timer.setInterval(poll_interval_ms)
        self._timer.start()
        logger.info("Polling every %dms", poll_interval_ms)

    def stop(self):
        self._timer.stop()

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    @Slot()
    def _on_tick(self):
        try:
            self.run_cycle()
        except Exception:
            logger.exception("Poll cycle failed")

    def run_cycle(self, now: float | None = None) -> CycleResult | None:
        """One full pass. Returns None when the cycle was skipped."""
        if self._in_cycle:
            logger.debug("Previous poll cycle still running, dropping tick")
            self.cycle_skipped.emit("busy")
            return None
        self._in_cycle = True
        try:
            return self._run_cycle(time.time() if now is None else now)
        finally:
            self._in_cycle = False

    def _run_cycle(self, now: float) -> CycleResult | None:
        snapshot = read_snapshot(self._data_dir)
        if snapshot is None:
            logger.info("No stats available")
            self.cycle_skipped.emit("no-stats")
            return None

        backfill = not self._reconciler.initialized
        result = CycleResult(backfill=backfill)
        if backfill:
            logger.info("Initializing counters with current totals (backfill)...")

        listings = read_projects(self._data_dir)
        # Directory scans run before any counter state is committed
        active = self._scanner.scan(self._window, now=now, listings=listings)

        ids_on_disk = set().union(*(p.record_ids() for p in listings)) if listings else set()
        new_ids = self._deduper.find_new(ids_on_disk)
        if backfill:
            # Conversations present at startup are pre-existing, not events
            if new_ids:
                self._deduper.commit(new_ids)
                logger.info("Marked %d existing conversations as seen (not backfilled)", len(new_ids))
            logger.info("Total conversations on disk: %d", len(ids_on_disk))
        elif new_ids:
            self._sink.add_counter(CONVERSATION_COUNT, len(new_ids), dict(self._source))
            self._deduper.commit(new_ids)
            result.new_conversations = len(new_ids)
            logger.info("New conversations: +%d", len(new_ids))

        result.deltas = self._reconciler.reconcile(snapshot)

        if backfill:
            historical = self._accumulator.backfill()
            if historical > 0:
                self._sink.add_counter(ACTIVE_TIME, historical, dict(self._source))
                logger.info("Backfilled active time: %ds", historical)

        result.active_sessions = active
        result.active_seconds_added = self._accumulator.observe(bool(active), now)
        active_delta = self._accumulator.take_counter_delta()
        if active_delta > 0:
            self._sink.add_counter(ACTIVE_TIME, active_delta, dict(self._source))

        self._gauges.publish(active)

        logger.info(
            "Updated: %d convos (%d tracked), %d sessions, %d msgs, %s tokens, %d active",
            len(ids_on_disk), self._deduper.seen_count, snapshot.session_count,
            snapshot.message_count, f"{snapshot.total_tokens:,}", len(active),
        )
        self.cycle_completed.emit(result)
        return result
