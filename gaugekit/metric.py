"""
Base abstraction for labeled metrics.

A metric owns a registry of children keyed by LabelTuple. Callers reach a
child through a Partial: accumulate label pairs, then ``apply()`` to resolve
(or create) the child for that label set. Concrete metric kinds supply the
child type and its mutation surface.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from gaugekit.labels import LabelTuple, resolve
from gaugekit.series import SeriesPoint

logger = logging.getLogger(__name__)


class Metric(ABC):
    """
    A named metric family with a fixed label schema.

    Thread-safety: resolving children and snapshotting may run from any
    thread. The child registry is guarded by a single lock; snapshots copy
    the registry entries under the lock and read child values afterwards,
    so a snapshot is not a consistent cut across children.
    """

    metric_type = "untyped"

    def __init__(self, name: str, documentation: str, label_names: Sequence[str]):
        self.name = name
        self.documentation = documentation
        self.label_names: Tuple[str, ...] = tuple(label_names)
        self._children: Dict[LabelTuple, Any] = {}
        self._lock = threading.Lock()

    class Partial:
        """
        Accumulates label pairs for one child of ``metric``.

        Not safe to share between threads. Concurrent branches must each
        ``clone()`` a common Partial before adding their own pairs; mutating
        one shared instance from several threads is a race whose winning
        label value is undefined.
        """

        def __init__(self, metric: "Metric", pairs: Optional[Dict[str, str]] = None):
            self.metric = metric
            self._pairs: Dict[str, str] = dict(pairs or {})

        def label_pair(self, name: str, value: str) -> "Metric.Partial":
            # Last write for a name wins; checked against the schema on apply()
            self._pairs[name] = value
            return self

        def labels(self) -> Dict[str, str]:
            return dict(self._pairs)

        def clone(self) -> "Metric.Partial":
            return type(self)(self.metric, self._pairs)

        def __copy__(self):
            return self.clone()

        def apply(self):
            """
            Finalize the accumulated pairs into the child for that label set.

            Raises:
                SchemaMismatch: if the label names differ from the schema
            """
            labels = resolve(self.metric.name, self._pairs, self.metric.label_names)
            return self.metric.resolve_or_create(labels)

        def __repr__(self) -> str:
            return f"{type(self).__qualname__}({self.metric.name}, {self._pairs!r})"

    def new_partial(self) -> "Metric.Partial":
        """Start accumulating labels for a child of this metric."""
        return self.Partial(self)

    @abstractmethod
    def _new_child(self, labels: LabelTuple):
        """Create an unregistered child for ``labels``."""

    def resolve_or_create(self, labels: LabelTuple):
        """Return the child for ``labels``, inserting a new one if absent."""
        with self._lock:
            child = self._children.get(labels)
            if child is not None:
                return child
            child = self._new_child(labels)
            self._children[labels] = child

        logger.debug(f"Created child {self.name}{{{labels.key()}}}")
        return child

    def children(self) -> List[Tuple[LabelTuple, Any]]:
        """Registered (labels, child) pairs at the time of the call."""
        with self._lock:
            return list(self._children.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._children)

    def snapshot(self) -> List[SeriesPoint]:
        """
        One SeriesPoint per registered child.

        Each child's value is read atomically, but children are read one
        after another: concurrent mutations may land between reads, and a
        child inserted while the snapshot runs may be missing from it.
        """
        return [
            SeriesPoint(self.name, labels, child.value)
            for labels, child in self.children()
        ]

    def reset_all(self):
        """Reset every registered child to its default in place."""
        entries = self.children()
        for _, child in entries:
            child.reset()
        logger.info(f"Reset {len(entries)} children of {self.name}")

    def clear(self):
        """
        Drop every child from the registry.

        Children obtained before the clear keep working but are no longer
        exported; the next ``apply()`` for the same labels creates a new child.
        """
        with self._lock:
            dropped = len(self._children)
            self._children = {}
        logger.info(f"Cleared {dropped} children of {self.name}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, labels={list(self.label_names)})"
