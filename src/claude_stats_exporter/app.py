"""Application entry point: headless Qt event loop driving the exporter."""

import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer
from PySide6.QtNetwork import QLocalSocket, QLocalServer

from claude_stats_exporter.services.active_time import ActiveTimeAccumulator
from claude_stats_exporter.services.config_manager import ConfigManager, ConfigError
from claude_stats_exporter.services.conversation_deduper import ConversationDeduper
from claude_stats_exporter.services.delta_reconciler import DeltaReconciler
from claude_stats_exporter.services.gauge_state import GaugePublisher
from claude_stats_exporter.services.otel_sink import create_otlp_sink
from claude_stats_exporter.services.persistence import PersistenceStore
from claude_stats_exporter.services.stats_exporter import StatsExporter

logger = logging.getLogger(__name__)

SOCKET_PREFIX = "claude-stats-exporter"

# Lets the interpreter run Python signal handlers while Qt owns the loop
SIGNAL_WAKEUP_MS = 500


def _check_single_instance(instance_id: str) -> QLocalServer | None:
    """Enforce one exporter per instance id. Returns server if we're the first."""
    name = f"{SOCKET_PREFIX}-{instance_id}"
    socket = QLocalSocket()
    socket.connectToServer(name)
    if socket.waitForConnected(500):
        socket.close()
        return None

    server = QLocalServer()
    server.removeServer(name)
    server.listen(name)
    return server


def _install_shutdown_handlers(app: QCoreApplication):
    def handle(signum, frame):
        logger.info("Shutting down...")
        app.quit()

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)


def run() -> int:
    """Launch the exporter and block until shutdown."""
    app = QCoreApplication(sys.argv)
    app.setApplicationName("Claude Stats Exporter")
    app.setOrganizationName("claude-stats-exporter")
    app.setOrganizationDomain("claude.local")

    config_manager = ConfigManager()
    try:
        config = config_manager.load_config()
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if config.debug_logging else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Claude Code Metrics Exporter starting...")
    logger.info("Claude data dir: %s", config.data_dir)
    logger.info("OTLP Endpoint: %s", config.otlp_endpoint)
    logger.info("Instance ID: %s", config.instance_id)

    instance_server = _check_single_instance(config.instance_id)
    if instance_server is None:
        logger.error("Another exporter is already running for instance %s", config.instance_id)
        return 1

    sink = create_otlp_sink(config.otlp_endpoint, config.export_interval_ms, config.instance_id)
    store = PersistenceStore(config.data_dir)

    accumulator = ActiveTimeAccumulator(store)
    accumulator.load()
    deduper = ConversationDeduper(store)
    deduper.load()

    gauges = GaugePublisher(config.instance_id)
    sink.register_gauges(gauges.readings)

    exporter = StatsExporter(
        data_dir=config.data_dir,
        sink=sink,
        reconciler=DeltaReconciler(sink, config.instance_id),
        accumulator=accumulator,
        deduper=deduper,
        gauges=gauges,
        instance_id=config.instance_id,
        active_window_seconds=config.active_window_seconds,
    )

    _install_shutdown_handlers(app)
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(SIGNAL_WAKEUP_MS)

    logger.info("Starting metrics collection...")
    exporter.start(config.poll_interval_ms)

    ret = app.exec()

    exporter.stop()
    wakeup.stop()
    if not sink.shutdown(config.shutdown_timeout_ms):
        logger.warning("Metrics may not have been fully flushed")
    instance_server.close()
    return ret
