"""Control API for reading and writing gauges using FastAPI."""
from typing import Dict
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel, Field
import logging
import time

from gaugekit.errors import SchemaMismatch
from gaugekit.gauge import Gauge

logger = logging.getLogger(__name__)


class ChildRequest(BaseModel):
    """Identifies one child of a gauge."""
    labels: Dict[str, str] = Field(default_factory=dict)


class SetRequest(ChildRequest):
    value: float


class StepRequest(ChildRequest):
    value: float = 1.0


class LogLevelRequest(BaseModel):
    """Request to change log level."""
    level: str


class ControlAPI:
    """FastAPI-based control API over a gauge service."""

    def __init__(self, service):
        """
        Initialize control API.

        Args:
            service: The GaugeService whose gauges are served
        """
        self.service = service
        self.app = FastAPI(title="gaugekit Control API")
        self._setup_routes()

    def _gauge(self, name: str) -> Gauge:
        try:
            return self.service.get_gauge(name)
        except KeyError:
            raise HTTPException(
                status_code=404,
                detail=f"Gauge '{name}' not found. Available gauges: {sorted(self.service.gauges)}"
            )

    def _child(self, name: str, labels: Dict[str, str]) -> Gauge.Child:
        self._gauge(name)
        try:
            return self.service.child(name, labels)
        except SchemaMismatch as e:
            raise HTTPException(status_code=422, detail=str(e))

    @staticmethod
    def _child_body(name: str, child: Gauge.Child) -> dict:
        return {"gauge": name, "labels": dict(child.labels), "value": child.value}

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/healthz")
        async def healthz():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": time.time()}

        @self.app.get("/status")
        async def status():
            gauges = self.service.gauges
            return {
                "uptime_seconds": self.service.uptime_seconds(),
                "gauges": {name: len(gauge) for name, gauge in gauges.items()},
                "total_children": sum(len(gauge) for gauge in gauges.values()),
                "exporters": {
                    "prometheus": self.service.config.exporters.prometheus.enabled,
                    "otel": self.service.otel_exporter is not None,
                },
            }

        @self.app.get("/metrics")
        async def metrics():
            """Prometheus text exposition of every served gauge."""
            return Response(content=self.service.prom_exporter.render(), media_type=CONTENT_TYPE_LATEST)

        @self.app.get("/gauges")
        async def list_gauges():
            return [gauge.to_dict() for gauge in self.service.gauges.values()]

        @self.app.get("/gauges/{name}")
        async def get_gauge(name: str):
            return self._gauge(name).to_dict()

        @self.app.post("/gauges/{name}/set")
        async def set_child(name: str, request: SetRequest):
            child = self._child(name, request.labels)
            child.set(request.value)
            return self._child_body(name, child)

        @self.app.post("/gauges/{name}/increment")
        async def increment_child(name: str, request: StepRequest):
            child = self._child(name, request.labels)
            child.increment(request.value)
            return self._child_body(name, child)

        @self.app.post("/gauges/{name}/decrement")
        async def decrement_child(name: str, request: StepRequest):
            child = self._child(name, request.labels)
            child.decrement(request.value)
            return self._child_body(name, child)

        @self.app.post("/gauges/{name}/child/reset")
        async def reset_child(name: str, request: ChildRequest):
            """Reset one child to the gauge default value."""
            child = self._child(name, request.labels)
            child.reset()
            return self._child_body(name, child)

        @self.app.post("/gauges/{name}/reset")
        async def reset_gauge(name: str):
            """Reset every child of a gauge to its default value."""
            gauge = self._gauge(name)
            gauge.reset_all()
            return {"status": "reset", "gauge": name, "children": len(gauge)}

        @self.app.post("/gauges/{name}/clear")
        async def clear_gauge(name: str):
            """Drop every child of a gauge."""
            self._gauge(name).clear()
            return {"status": "cleared", "gauge": name}

        @self.app.post("/control/loglevel")
        async def set_log_level(request: LogLevelRequest):
            """Change log level at runtime."""
            level = request.level.upper()

            if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid log level: {level}"
                )

            logging.getLogger().setLevel(getattr(logging, level))
            logger.info(f"Log level changed to: {level}")

            return {"status": "log_level_changed", "level": level}

    def run(self, host: str = "0.0.0.0", port: int = 8081):
        """Run the API server."""
        import uvicorn
        uvicorn.run(self.app, host=host, port=port, log_level="info")
