"""Metric names, deltas and the sink interface."""

from dataclasses import dataclass, field
from typing import Callable, Protocol

METRIC_PREFIX = "claude.code.stats"

SESSION_COUNT = f"{METRIC_PREFIX}.session.count"
MESSAGE_COUNT = f"{METRIC_PREFIX}.message.count"
TOOL_USAGE = f"{METRIC_PREFIX}.tool.usage"
TOKEN_USAGE = f"{METRIC_PREFIX}.token.usage"
COST_USAGE = f"{METRIC_PREFIX}.cost.usage"
ACTIVE_TIME = f"{METRIC_PREFIX}.active.time"
CONVERSATION_COUNT = f"{METRIC_PREFIX}.conversation.count"
SESSION_ACTIVE = f"{METRIC_PREFIX}.session.active"
SESSION_INFO = f"{METRIC_PREFIX}.session.info"

# name -> (description, unit)
COUNTERS = {
    SESSION_COUNT: ("Total count of Claude Code sessions (from stats cache)", "1"),
    MESSAGE_COUNT: ("Total count of messages (from stats cache)", "1"),
    TOOL_USAGE: ("Total count of tool calls (from stats cache)", "1"),
    TOKEN_USAGE: ("Token usage by type and model (from stats cache)", "tokens"),
    COST_USAGE: ("Cost in USD by model (from stats cache)", "USD"),
    ACTIVE_TIME: ("Cumulative active time (from stats cache)", "s"),
    CONVERSATION_COUNT: (
        "Total count of Claude Code conversations (from project directories)", "1"
    ),
}

GAUGES = {
    SESSION_ACTIVE: ("Number of active sessions (from stats cache)", "1"),
    SESSION_INFO: ("Active session information with metadata (from stats cache)", "1"),
}


@dataclass(frozen=True)
class Delta:
    metric: str
    value: int | float
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GaugeReading:
    value: int | float
    labels: dict[str, str] = field(default_factory=dict)


class MetricSink(Protocol):
    """Accepts counter adds and lazily polled gauges."""

    def add_counter(self, name: str, value: int | float, labels: dict[str, str]) -> None:
        ...

    def register_gauges(self, provider: Callable[[str], list[GaugeReading]]) -> None:
        ...

    def shutdown(self, timeout_millis: int = 5000) -> bool:
        ...
