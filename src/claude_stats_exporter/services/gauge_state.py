"""Point-in-time values read by the gauge callbacks."""

from dataclasses import dataclass, field

from claude_stats_exporter.types.metrics import SESSION_ACTIVE, SESSION_INFO, GaugeReading
from claude_stats_exporter.types.sessions import ActiveSession


@dataclass(frozen=True)
class GaugeState:
    instance_id: str = ""
    active_sessions: tuple[ActiveSession, ...] = field(default_factory=tuple)

    @property
    def active_session_count(self) -> int:
        return len(self.active_sessions)


class GaugePublisher:
    """Holds the latest GaugeState for the exporter thread to read.

    The poll cycle replaces the whole state object; readers only ever see a
    complete, immutable state.
    """

    def __init__(self, instance_id: str):
        self._state = GaugeState(instance_id=instance_id)

    @property
    def state(self) -> GaugeState:
        return self._state

    def publish(self, active_sessions: list[ActiveSession]):
        self._state = GaugeState(
            instance_id=self._state.instance_id,
            active_sessions=tuple(active_sessions),
        )

    def readings(self, gauge: str) -> list[GaugeReading]:
        """Current readings for a gauge name; unknown names yield []."""
        state = self._state
        source = {"source": state.instance_id}
        if gauge == SESSION_ACTIVE:
            return [GaugeReading(state.active_session_count, source)]
        if gauge == SESSION_INFO:
            return [
                GaugeReading(1, {
                    "session_id": s.id,
                    "title": s.title,
                    "directory": s.project_path,
                    **source,
                })
                for s in state.active_sessions
            ]
        return []
