"""OpenTelemetry push exporter using OTLP."""
from typing import Dict, Iterable, List
import logging

from opentelemetry import metrics
from opentelemetry.metrics import CallbackOptions, Meter, Observation
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.resources import Resource

from gaugekit.config import OTELExporterConfig
from gaugekit.gauge import Gauge

logger = logging.getLogger(__name__)


class OTELGaugeBridge:
    """
    Publishes gauges as OpenTelemetry observable gauges.

    Each collection cycle calls back into ``Gauge.snapshot()``, so values are
    never copied into OpenTelemetry state between collections.
    """

    def __init__(self, meter: Meter):
        self.meter = meter
        self.instruments: Dict[str, object] = {}

    def register_gauge(self, gauge: Gauge):
        """Create an observable gauge backed by ``gauge``."""
        if gauge.name in self.instruments:
            raise ValueError(f"Gauge {gauge.name} already registered with OTEL")

        def callback(options: CallbackOptions) -> Iterable[Observation]:
            return [
                Observation(point.value, attributes=dict(point.labels))
                for point in gauge.snapshot()
            ]

        self.instruments[gauge.name] = self.meter.create_observable_gauge(
            name=gauge.name,
            callbacks=[callback],
            description=gauge.documentation,
            unit="1"
        )
        logger.info(f"Registered OTEL observable gauge: {gauge.name} with labels {list(gauge.label_names)}")


class OTELExporter:
    """Owns the MeterProvider that pushes observable gauges over OTLP."""

    def __init__(self, config: OTELExporterConfig):
        self.config = config
        self.meter_provider = None
        self.bridge = None

        if config.enabled:
            self._initialize_otel()

    def _initialize_otel(self):
        """Initialize OpenTelemetry SDK."""
        resource_attrs = {
            "service.name": "gaugekit",
            "deployment.environment": "dev",
        }
        resource_attrs.update(self.config.resource)

        exporter = OTLPMetricExporter(
            endpoint=self.config.endpoint,
            insecure=self.config.insecure,
            headers=tuple(self.config.headers.items()) if self.config.headers else None
        )

        reader = PeriodicExportingMetricReader(
            exporter,
            export_interval_millis=self.config.export_interval_s * 1000
        )

        self.meter_provider = MeterProvider(
            resource=Resource.create(resource_attrs),
            metric_readers=[reader]
        )
        metrics.set_meter_provider(self.meter_provider)

        self.bridge = OTELGaugeBridge(self.meter_provider.get_meter(__name__))
        logger.info(f"OTEL exporter initialized, pushing to {self.config.endpoint}")

    def register_gauges(self, gauges: List[Gauge]):
        if self.bridge is None:
            logger.warning("OTEL exporter disabled, gauges not registered")
            return
        for gauge in gauges:
            self.bridge.register_gauge(gauge)

    def shutdown(self):
        """Shutdown OTEL exporter."""
        if self.meter_provider is not None:
            self.meter_provider.shutdown()
            logger.info("OTEL exporter shutdown complete")
