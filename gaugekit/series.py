"""Snapshot records produced by metrics for export."""
from dataclasses import dataclass

from gaugekit.labels import LabelTuple


@dataclass(frozen=True)
class SeriesPoint:
    """The value of one child at snapshot time, with its labels."""
    name: str
    labels: LabelTuple
    value: float

    def label_key(self) -> str:
        """Generate a stable key from sorted labels."""
        return self.labels.key()
