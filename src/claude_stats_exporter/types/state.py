"""Persisted exporter state."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ActiveTimeState:
    cumulative_seconds: int = 0
    last_observation_time: float | None = None
