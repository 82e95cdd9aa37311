"""Prometheus pull exporter using prometheus_client."""
from typing import Dict, Iterable, Optional
from prometheus_client import CollectorRegistry, generate_latest, start_http_server
from prometheus_client.core import GaugeMetricFamily
import logging

from gaugekit.config import PrometheusExporterConfig
from gaugekit.gauge import Gauge

logger = logging.getLogger(__name__)


class GaugeCollector:
    """prometheus_client collector reading a Gauge snapshot at scrape time."""

    def __init__(self, gauge: Gauge):
        self.gauge = gauge

    def _family(self) -> GaugeMetricFamily:
        return GaugeMetricFamily(
            self.gauge.name,
            self.gauge.documentation,
            labels=list(self.gauge.label_names)
        )

    def describe(self) -> Iterable[GaugeMetricFamily]:
        return [self._family()]

    def collect(self) -> Iterable[GaugeMetricFamily]:
        family = self._family()
        for point in self.gauge.snapshot():
            family.add_metric(point.labels.values_for(self.gauge.label_names), point.value)
        yield family


class PrometheusExporter:
    """Exposes registered gauges through a prometheus_client registry."""

    def __init__(self, config: PrometheusExporterConfig, registry: Optional[CollectorRegistry] = None):
        self.config = config
        # Use a custom registry to avoid exporting default Python/process metrics
        self.registry = registry if registry is not None else CollectorRegistry()
        self.collectors: Dict[str, GaugeCollector] = {}

        if config.enabled:
            self._start_server()

    def register_gauge(self, gauge: Gauge):
        """Register a gauge for export."""
        collector = GaugeCollector(gauge)
        try:
            self.registry.register(collector)
        except ValueError as e:
            logger.error(f"Failed to register gauge {gauge.name}: {e}")
            raise

        self.collectors[gauge.name] = collector
        logger.info(f"Registered Prometheus gauge: {gauge.name} with labels {list(gauge.label_names)}")

    def unregister_gauge(self, name: str):
        collector = self.collectors.pop(name, None)
        if collector is None:
            logger.warning(f"Gauge {name} not registered with Prometheus exporter")
            return
        self.registry.unregister(collector)

    def render(self) -> bytes:
        """Text exposition of every registered gauge."""
        return generate_latest(self.registry)

    def _start_server(self):
        """Start Prometheus HTTP server."""
        try:
            start_http_server(
                self.config.port,
                addr=self.config.bind_address,
                registry=self.registry
            )
            logger.info(
                f"Prometheus exporter listening on "
                f"{self.config.bind_address}:{self.config.port}/metrics"
            )
        except Exception as e:
            logger.error(f"Failed to start Prometheus HTTP server: {e}")
            raise
