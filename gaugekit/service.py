"""Gauge service: defines configured gauges and exposes them to exporters."""
import time
import logging
from typing import Dict, Mapping, Optional

from gaugekit.config import Config
from gaugekit.gauge import Gauge
from gaugekit.prom_exporter import PrometheusExporter
from gaugekit.otel_exporter import OTELExporter

logger = logging.getLogger(__name__)


class GaugeService:
    """
    Owns the gauges defined in a Config.

    Values are written by the application (or through the control API) and
    read by the Prometheus and OpenTelemetry exporters at collection time.
    """

    def __init__(self, config: Config):
        self.config = config
        self.gauges: Dict[str, Gauge] = {}
        self.started_at = time.time()

        self.prom_exporter: Optional[PrometheusExporter] = None
        self.otel_exporter: Optional[OTELExporter] = None

        self._define_gauges()
        self._start_exporters()

    def _define_gauges(self):
        for gauge_config in self.config.gauges:
            gauge = gauge_config.to_builder().build()
            self.gauges[gauge.name] = gauge

            for entry in gauge_config.initial:
                self.child(gauge.name, entry.labels).set(entry.value)

            logger.info(
                f"Defined gauge '{gauge.name}' with labels {list(gauge.label_names)} "
                f"and {len(gauge_config.initial)} initial children"
            )

    def _start_exporters(self):
        gauges = list(self.gauges.values())

        # Registry is always populated. The scrape server starts only when enabled.
        self.prom_exporter = PrometheusExporter(self.config.exporters.prometheus)
        for gauge in gauges:
            self.prom_exporter.register_gauge(gauge)

        if self.config.exporters.otel.enabled:
            self.otel_exporter = OTELExporter(self.config.exporters.otel)
            self.otel_exporter.register_gauges(gauges)
        else:
            logger.info("OTEL exporter disabled")

    def get_gauge(self, name: str) -> Gauge:
        """
        Raises:
            KeyError: if no gauge with that full name is defined
        """
        return self.gauges[name]

    def child(self, name: str, labels: Mapping[str, str]) -> Gauge.Child:
        """
        Resolve the child of gauge ``name`` for ``labels``.

        Raises:
            KeyError: unknown gauge
            SchemaMismatch: labels do not match the gauge's label names
        """
        partial = self.get_gauge(name).new_partial()
        for label_name, label_value in labels.items():
            partial.label_pair(label_name, label_value)
        return partial.apply()

    def uptime_seconds(self) -> float:
        return time.time() - self.started_at

    def shutdown(self):
        logger.info("Shutting down gauge service")
        if self.otel_exporter:
            self.otel_exporter.shutdown()
