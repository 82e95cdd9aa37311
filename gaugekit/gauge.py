"""
Gauge: a labeled metric reporting instantaneous values from external state.

Example::

    water_temp = (
        Gauge.new_builder()
        .namespace("seaworld")
        .subsystem("aquatic_tanks")
        .name("water_temperature_c")
        .label_names("tank_name")
        .documentation("The current aquarium tank temperature partitioned by tank name.")
        .build()
    )

    water_temp.new_partial().label_pair("tank_name", "shamu").apply().set(42)
    water_temp.new_partial().label_pair("tank_name", "urchin").apply().set(9)

which exports two children::

    seaworld_aquatic_tanks_water_temperature_c{tank_name="shamu"}  = 42
    seaworld_aquatic_tanks_water_temperature_c{tank_name="urchin"} = 9
"""
import logging
import threading
from typing import Any, Dict, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from gaugekit.errors import InvalidConfiguration
from gaugekit.labels import LabelTuple, is_valid_metric_name, validate_label_names
from gaugekit.metric import Metric

logger = logging.getLogger(__name__)

DEFAULT_VALUE = 0.0


class Gauge(Metric):
    """
    Metric whose children hold one float each, freely set, raised or lowered.

    ``reset_all()`` resets every child in place to ``default_value``; handles
    held by callers stay connected. ``clear()`` drops all children instead,
    after which held handles are stale and no longer exported.
    """

    metric_type = "gauge"

    def __init__(self, name: str, documentation: str, label_names: Sequence[str] = (),
                 default_value: float = DEFAULT_VALUE):
        super().__init__(name, documentation, label_names)
        self.default_value = float(default_value)

    class Child:
        """
        The value for one label set of a Gauge.

        Every operation is atomic. Sequences of operations are not: a
        read followed by ``set`` can lose a concurrent ``increment``.
        A new Child starts at 0; the gauge default applies only on reset.
        Do not keep a Child across ``Gauge.clear()``; keep the Partial and
        ``apply()`` it again instead.
        """

        __slots__ = ("gauge", "labels", "_value", "_lock")

        def __init__(self, gauge: "Gauge", labels: LabelTuple):
            self.gauge = gauge
            self.labels = labels
            self._value = DEFAULT_VALUE
            self._lock = threading.Lock()

        @property
        def value(self) -> float:
            with self._lock:
                return self._value

        def set(self, v: float):
            with self._lock:
                self._value = float(v)

        def increment(self, v: float = 1.0):
            with self._lock:
                self._value += v

        def decrement(self, v: float = 1.0):
            with self._lock:
                self._value -= v

        def reset(self):
            """Set the value back to the gauge's default value."""
            with self._lock:
                self._value = self.gauge.default_value

        def __repr__(self) -> str:
            return f"Gauge.Child({self.gauge.name}{{{self.labels.key()}}}={self.value})"

    class Partial(Metric.Partial):
        """
        Label accumulator for a Gauge.

        All mutations are retained, so do not reuse one Partial for distinct
        label sets from different threads. This races and either thread may
        end up with the other's ``data_type``::

            shared.label_pair("system", "cache").label_pair("data_type", "avatar").apply()

        Clone a common parent per thread instead::

            local = shared.clone()
            local.label_pair("data_type", "avatar").apply().set(15)
        """

    def _new_child(self, labels: LabelTuple) -> "Gauge.Child":
        return Gauge.Child(self, labels)

    @staticmethod
    def new_builder() -> "GaugeBuilder":
        return GaugeBuilder()

    def to_dict(self) -> Dict[str, Any]:
        """Legacy JSON document: base labels, docstring and child values."""
        return {
            "baseLabels": {"name": self.name},
            "docstring": self.documentation,
            "metric": {
                "type": self.metric_type,
                "value": [
                    {"labels": dict(point.labels), "value": point.value}
                    for point in self.snapshot()
                ],
            },
        }


class GaugeBuilder(BaseModel):
    """
    Immutable definition of a Gauge.

    Every configuration call returns a modified copy, so a partially
    configured builder can be shared and branched freely. Validation
    happens in ``build()``.
    """

    model_config = ConfigDict(frozen=True)

    metric_name: Optional[str] = None
    metric_namespace: Optional[str] = None
    metric_subsystem: Optional[str] = None
    docstring: Optional[str] = None
    labels: Tuple[str, ...] = ()
    default: Optional[Any] = None

    def name(self, n: str) -> "GaugeBuilder":
        return self.model_copy(update={"metric_name": n})

    def namespace(self, ns: str) -> "GaugeBuilder":
        return self.model_copy(update={"metric_namespace": ns})

    def subsystem(self, ss: str) -> "GaugeBuilder":
        return self.model_copy(update={"metric_subsystem": ss})

    def documentation(self, d: str) -> "GaugeBuilder":
        return self.model_copy(update={"docstring": d})

    def label_names(self, *names: str) -> "GaugeBuilder":
        return self.model_copy(update={"labels": tuple(names)})

    def default_value(self, v: float) -> "GaugeBuilder":
        """Value used by ``Child.reset()`` and ``Gauge.reset_all()``; 0 if unset."""
        return self.model_copy(update={"default": v})

    def full_name(self) -> str:
        """``namespace_subsystem_name``, skipping unset parts."""
        if not self.metric_name:
            raise InvalidConfiguration("Gauge name must be provided")
        parts = [self.metric_namespace, self.metric_subsystem, self.metric_name]
        return "_".join(p for p in parts if p)

    def build(self) -> Gauge:
        """
        Raises:
            InvalidConfiguration: on a missing or malformed name, namespace,
                subsystem or label name, missing documentation, or a
                default value that is not a number
        """
        name = self.full_name()

        for kind, part in (("namespace", self.metric_namespace),
                           ("subsystem", self.metric_subsystem),
                           ("name", self.metric_name)):
            if part is not None and not is_valid_metric_name(part):
                raise InvalidConfiguration(f"Invalid {kind} '{part}' for gauge '{name}'")

        if not self.docstring:
            raise InvalidConfiguration(f"Gauge '{name}' must have documentation")

        invalid = validate_label_names(self.labels)
        if invalid:
            raise InvalidConfiguration(f"Invalid label names for gauge '{name}': {invalid}")
        if len(set(self.labels)) != len(self.labels):
            raise InvalidConfiguration(f"Duplicate label names for gauge '{name}': {list(self.labels)}")

        default = DEFAULT_VALUE
        if self.default is not None:
            try:
                default = float(self.default)
            except (TypeError, ValueError):
                raise InvalidConfiguration(f"Default value for gauge '{name}' is not a number: {self.default!r}")
        logger.debug(f"Built gauge {name} with labels {list(self.labels)}, default {default}")
        return Gauge(name, self.docstring, self.labels, default)
