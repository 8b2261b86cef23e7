"""OpenTelemetry metric sink exporting over OTLP/gRPC."""

import logging
from typing import Callable

from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import CallbackOptions, Observation
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource

from claude_stats_exporter.types.metrics import COUNTERS, GAUGES, GaugeReading

logger = logging.getLogger(__name__)

# Distinct from Claude Code's own telemetry service name
DEFAULT_SERVICE_NAME = "claude-code-stats"
SERVICE_VERSION_VALUE = "1.0.0"
METER_NAME = "claude-code-metrics"


class OtelMetricSink:
    """MetricSink backed by an OpenTelemetry MeterProvider.

    Counters are created up front; gauges are observable and pull their
    values from the registered provider on the reader's own schedule.
    """

    def __init__(self, reader: MetricReader, instance_id: str,
                 service_name: str = DEFAULT_SERVICE_NAME):
        resource = Resource.create({
            SERVICE_NAME: service_name,
            SERVICE_VERSION: SERVICE_VERSION_VALUE,
            "service.instance.id": instance_id,
        })
        self._provider = MeterProvider(resource=resource, metric_readers=[reader])
        self._meter = self._provider.get_meter(METER_NAME)
        self._counters = {
            name: self._meter.create_counter(name, unit=unit, description=description)
            for name, (description, unit) in COUNTERS.items()
        }
        self._gauges_registered = False
        self._shut_down = False

    def add_counter(self, name: str, value: int | float, labels: dict[str, str]) -> None:
        if value < 0:
            raise ValueError(f"Counter {name} cannot decrease (got {value})")
        counter = self._counters.get(name)
        if counter is None:
            raise KeyError(f"Unknown counter: {name}")
        if value == 0:
            return
        counter.add(value, attributes=labels)

    def register_gauges(self, provider: Callable[[str], list[GaugeReading]]) -> None:
        if self._gauges_registered:
            logger.warning("Gauges already registered, ignoring")
            return
        for name, (description, unit) in GAUGES.items():
            self._meter.create_observable_gauge(
                name,
                callbacks=[_gauge_callback(name, provider)],
                unit=unit,
                description=description,
            )
        self._gauges_registered = True

    def shutdown(self, timeout_millis: int = 5000) -> bool:
        """Flush buffered metrics and stop the reader within ``timeout_millis``."""
        if self._shut_down:
            return True
        self._shut_down = True
        try:
            self._provider.shutdown(timeout_millis=timeout_millis)
        except Exception:
            logger.exception("Metric provider shutdown failed")
            return False
        return True


def _gauge_callback(name: str, provider: Callable[[str], list[GaugeReading]]):
    def callback(options: CallbackOptions):
        return [Observation(r.value, r.labels) for r in provider(name)]
    return callback


def create_otlp_sink(endpoint: str, export_interval_ms: int, instance_id: str) -> OtelMetricSink:
    """Build a sink that pushes to an OTLP/gRPC collector periodically."""
    exporter = OTLPMetricExporter(endpoint=endpoint)
    reader = PeriodicExportingMetricReader(exporter, export_interval_millis=export_interval_ms)
    return OtelMetricSink(reader, instance_id)
