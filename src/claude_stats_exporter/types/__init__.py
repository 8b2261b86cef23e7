"""Type definitions for Claude Stats Exporter."""

from claude_stats_exporter.types.snapshot import Snapshot, TokenTotals
from claude_stats_exporter.types.sessions import (
    ActiveSession,
    IndexEntry,
    ProjectListing,
    RecordFile,
)
from claude_stats_exporter.types.state import ActiveTimeState
from claude_stats_exporter.types.metrics import Delta, GaugeReading, MetricSink

__all__ = [
    "Snapshot",
    "TokenTotals",
    "ActiveSession",
    "IndexEntry",
    "ProjectListing",
    "RecordFile",
    "ActiveTimeState",
    "Delta",
    "GaugeReading",
    "MetricSink",
]
