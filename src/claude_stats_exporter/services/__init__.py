"""Services for Claude Stats Exporter."""

from claude_stats_exporter.services.active_time import ActiveTimeAccumulator
from claude_stats_exporter.services.config_manager import ConfigManager, ConfigError, ExporterConfig
from claude_stats_exporter.services.conversation_deduper import ConversationDeduper
from claude_stats_exporter.services.delta_reconciler import DeltaReconciler
from claude_stats_exporter.services.gauge_state import GaugePublisher, GaugeState
from claude_stats_exporter.services.persistence import PersistenceStore
from claude_stats_exporter.services.session_directory import read_projects
from claude_stats_exporter.services.session_scanner import ActiveSessionScanner
from claude_stats_exporter.services.snapshot_reader import read_snapshot
from claude_stats_exporter.services.stats_exporter import StatsExporter, CycleResult

__all__ = [
    "ActiveTimeAccumulator",
    "ConfigManager",
    "ConfigError",
    "ExporterConfig",
    "ConversationDeduper",
    "DeltaReconciler",
    "GaugePublisher",
    "GaugeState",
    "PersistenceStore",
    "read_projects",
    "ActiveSessionScanner",
    "read_snapshot",
    "StatsExporter",
    "CycleResult",
]
