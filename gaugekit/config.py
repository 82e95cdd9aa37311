"""Configuration models using Pydantic for validation."""
from typing import Dict, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
import os

from gaugekit.gauge import GaugeBuilder


class InitialValue(BaseModel):
    """A child created with a value when the service starts."""
    labels: Dict[str, str] = Field(default_factory=dict)
    value: float


class GaugeConfig(BaseModel):
    """A gauge definition served by the gauge service."""
    name: str
    namespace: Optional[str] = None
    subsystem: Optional[str] = None
    documentation: str
    labels: List[str] = Field(default_factory=list)
    default_value: Optional[float] = None
    initial: List[InitialValue] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_initial_labels(self):
        """Initial children must use exactly the declared label names."""
        declared = set(self.labels)
        for entry in self.initial:
            if set(entry.labels) != declared:
                raise ValueError(
                    f"Initial value for gauge '{self.name}' has labels {sorted(entry.labels)}, "
                    f"expected {sorted(declared)}"
                )
        return self

    def to_builder(self) -> GaugeBuilder:
        builder = (
            GaugeBuilder()
            .name(self.name)
            .documentation(self.documentation)
            .label_names(*self.labels)
        )
        if self.namespace is not None:
            builder = builder.namespace(self.namespace)
        if self.subsystem is not None:
            builder = builder.subsystem(self.subsystem)
        if self.default_value is not None:
            builder = builder.default_value(self.default_value)
        return builder


class PrometheusExporterConfig(BaseModel):
    """Prometheus pull exporter configuration."""
    enabled: bool = True
    port: int = 8000
    bind_address: str = "0.0.0.0"


class OTELExporterConfig(BaseModel):
    """OpenTelemetry push exporter configuration."""
    enabled: bool = False
    endpoint: str = "localhost:4317"
    insecure: bool = True
    export_interval_s: int = 10
    headers: Dict[str, str] = Field(default_factory=dict)
    resource: Dict[str, str] = Field(default_factory=dict)


class ExportersConfig(BaseModel):
    """Configuration for all exporters."""
    prometheus: PrometheusExporterConfig = Field(default_factory=PrometheusExporterConfig)
    otel: OTELExporterConfig = Field(default_factory=OTELExporterConfig)


class GlobalConfig(BaseModel):
    """Global configuration settings."""
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"
    control_api_host: str = "0.0.0.0"
    control_api_port: int = 8081


class Config(BaseModel):
    """Root configuration model."""
    model_config = ConfigDict(populate_by_name=True)

    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    exporters: ExportersConfig = Field(default_factory=ExportersConfig)
    gauges: List[GaugeConfig]

    @field_validator('gauges')
    @classmethod
    def validate_gauges(cls, v):
        """Validate gauge definitions."""
        if not v:
            raise ValueError("At least one gauge must be defined")

        names = [g.to_builder().full_name() for g in v]
        if len(names) != len(set(names)):
            raise ValueError("Gauge names must be unique")

        return v


def load_config(config_path: str) -> Config:
    """Load and validate configuration from YAML file."""
    import yaml

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}

    # Apply environment variable overrides
    if env_endpoint := os.getenv('OTEL_ENDPOINT'):
        raw_config.setdefault('exporters', {}).setdefault('otel', {})['endpoint'] = env_endpoint

    if env_log_level := os.getenv('LOG_LEVEL'):
        raw_config.setdefault('global', {})['log_level'] = env_log_level

    try:
        return Config(**raw_config)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")
