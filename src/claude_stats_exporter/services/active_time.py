"""Active time accrual from periodic activity samples."""

import logging

from claude_stats_exporter.services.persistence import PersistenceStore
from claude_stats_exporter.types.state import ActiveTimeState

logger = logging.getLogger(__name__)


class ActiveTimeAccumulator:
    """Turns one "is anything active" sample per poll into a monotonic total.

    Time accrues only between two consecutive active samples, by the
    wall-clock gap between them. A lone active sample adds nothing.

    The cumulative total is persisted; the watermark of what has been handed
    to the counter is in-memory only and starts at the loaded total, so time
    accrued by a previous process is never reported by observe(). backfill()
    hands that historical total out exactly once per process.
    """

    def __init__(self, store: PersistenceStore):
        self._store = store
        self._cumulative = 0
        self._last_observation: float | None = None
        self._was_active = False
        self._reported = 0
        self._loaded = 0
        self._backfilled = False

    def load(self):
        state = self._store.load_active_time()
        self._cumulative = state.cumulative_seconds
        self._last_observation = state.last_observation_time
        self._reported = self._cumulative
        self._loaded = self._cumulative

    @property
    def cumulative_seconds(self) -> int:
        return self._cumulative

    @property
    def state(self) -> ActiveTimeState:
        return ActiveTimeState(self._cumulative, self._last_observation)

    def observe(self, is_active: bool, now: float) -> int:
        """Record a sample taken at ``now`` (epoch seconds); return seconds added."""
        added = 0
        if is_active and self._was_active and self._last_observation is not None:
            gap = round(now - self._last_observation)
            if gap > 0:
                added = gap
                self._cumulative += added
                logger.info("Active time: +%ds (total: %ds)", added, self._cumulative)

        self._was_active = is_active
        self._last_observation = now
        self._store.save_active_time(self.state)
        return added

    def take_counter_delta(self) -> int:
        """Seconds accrued since the last call; advances the watermark."""
        delta = self._cumulative - self._reported
        if delta <= 0:
            return 0
        self._reported = self._cumulative
        return delta

    def backfill(self) -> int:
        """The total loaded at startup, returned on the first call only."""
        if self._backfilled:
            return 0
        self._backfilled = True
        return self._loaded
