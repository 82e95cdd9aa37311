"""Test the Prometheus and OpenTelemetry exporters against gauge snapshots."""
import pytest
from prometheus_client import CollectorRegistry
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from gaugekit.config import PrometheusExporterConfig
from gaugekit.gauge import Gauge
from gaugekit.otel_exporter import OTELGaugeBridge
from gaugekit.prom_exporter import GaugeCollector, PrometheusExporter


@pytest.fixture
def water_temp():
    gauge = (
        Gauge.new_builder()
        .namespace("seaworld")
        .subsystem("aquatic_tanks")
        .name("water_temperature_c")
        .label_names("tank_name")
        .documentation("The current aquarium tank temperature partitioned by tank name.")
        .build()
    )
    gauge.new_partial().label_pair("tank_name", "shamu").apply().set(42)
    gauge.new_partial().label_pair("tank_name", "urchin").apply().set(9)
    return gauge


def prometheus_exporter():
    return PrometheusExporter(PrometheusExporterConfig(enabled=False))


def test_prometheus_text_exposition(water_temp):
    exporter = prometheus_exporter()
    exporter.register_gauge(water_temp)

    output = exporter.render().decode("utf-8")

    assert "# TYPE seaworld_aquatic_tanks_water_temperature_c gauge" in output
    assert 'seaworld_aquatic_tanks_water_temperature_c{tank_name="shamu"} 42.0' in output
    assert 'seaworld_aquatic_tanks_water_temperature_c{tank_name="urchin"} 9.0' in output


def test_prometheus_reads_current_values(water_temp):
    registry = CollectorRegistry()
    registry.register(GaugeCollector(water_temp))

    water_temp.new_partial().label_pair("tank_name", "shamu").apply().decrement(2)

    value = registry.get_sample_value(
        "seaworld_aquatic_tanks_water_temperature_c", {"tank_name": "shamu"}
    )
    assert value == 40.0


def test_prometheus_multi_label_order():
    gauge = (
        Gauge.new_builder()
        .name("cache_entries")
        .label_names("system", "data_type")
        .documentation("Cache entries.")
        .build()
    )
    gauge.new_partial().label_pair("data_type", "avatar").label_pair("system", "cache").apply().set(15)
    exporter = prometheus_exporter()
    exporter.register_gauge(gauge)

    value = exporter.registry.get_sample_value(
        "cache_entries", {"system": "cache", "data_type": "avatar"}
    )
    assert value == 15.0


def test_prometheus_duplicate_registration(water_temp):
    exporter = prometheus_exporter()
    exporter.register_gauge(water_temp)

    with pytest.raises(ValueError):
        exporter.register_gauge(water_temp)


def test_prometheus_unregister(water_temp):
    exporter = prometheus_exporter()
    exporter.register_gauge(water_temp)
    exporter.unregister_gauge(water_temp.name)

    assert "water_temperature_c" not in exporter.render().decode("utf-8")
    # Unknown names are ignored
    exporter.unregister_gauge(water_temp.name)


def test_otel_observable_gauge(water_temp):
    reader = InMemoryMetricReader()
    provider = MeterProvider(metric_readers=[reader])
    bridge = OTELGaugeBridge(provider.get_meter("test"))
    bridge.register_gauge(water_temp)

    metrics_data = reader.get_metrics_data()
    exported = [
        metric
        for resource_metrics in metrics_data.resource_metrics
        for scope_metrics in resource_metrics.scope_metrics
        for metric in scope_metrics.metrics
    ]

    assert [m.name for m in exported] == ["seaworld_aquatic_tanks_water_temperature_c"]
    points = {dict(p.attributes)["tank_name"]: p.value for p in exported[0].data.data_points}
    assert points == {"shamu": 42.0, "urchin": 9.0}

    provider.shutdown()


def test_otel_duplicate_registration(water_temp):
    provider = MeterProvider(metric_readers=[InMemoryMetricReader()])
    bridge = OTELGaugeBridge(provider.get_meter("test"))
    bridge.register_gauge(water_temp)

    with pytest.raises(ValueError):
        bridge.register_gauge(water_temp)

    provider.shutdown()
