"""Label tuple identity and name validation."""
import re
from collections.abc import Mapping
from typing import Iterable, Iterator, List, Optional, Sequence

from gaugekit.errors import SchemaMismatch

METRIC_NAME_RE = re.compile(r'^[a-zA-Z_:][a-zA-Z0-9_:]*$')
LABEL_NAME_RE = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')
RESERVED_LABEL_PREFIX = "__"


class LabelTuple(Mapping):
    """
    Immutable label name -> label value mapping used as a child identity key.

    Pairs are stored sorted by label name, so equality and hashing do not
    depend on the order in which labels were supplied.
    """

    __slots__ = ("_items", "_hash")

    def __init__(self, pairs: Optional[Mapping] = None):
        items = tuple(sorted((str(k), str(v)) for k, v in (pairs or {}).items()))
        object.__setattr__(self, "_items", items)
        object.__setattr__(self, "_hash", hash(items))

    def __setattr__(self, name, value):
        raise AttributeError("LabelTuple is immutable")

    def __getitem__(self, name: str) -> str:
        for key, value in self._items:
            if key == name:
                return value
        raise KeyError(name)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other) -> bool:
        if isinstance(other, LabelTuple):
            return self._items == other._items
        if isinstance(other, Mapping):
            return dict(self._items) == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"LabelTuple({{{self.key()}}})"

    def key(self) -> str:
        """Stable string form, e.g. ``region=eu,tank=shamu``."""
        return ",".join(f"{k}={v}" for k, v in self._items)

    def values_for(self, label_names: Sequence[str]) -> List[str]:
        """Values ordered by ``label_names``."""
        return [self[name] for name in label_names]


def resolve(metric_name: str, pairs: Mapping, label_names: Sequence[str]) -> LabelTuple:
    """
    Turn accumulated label pairs into a LabelTuple for a declared schema.

    Raises:
        SchemaMismatch: if the pair names are not exactly ``label_names``
    """
    supplied = set(pairs.keys())
    declared = set(label_names)
    if supplied != declared:
        raise SchemaMismatch(metric_name, declared - supplied, supplied - declared)
    return LabelTuple(pairs)


def is_valid_metric_name(name: str) -> bool:
    return bool(METRIC_NAME_RE.match(name))


def validate_label_names(label_names: Iterable[str]) -> List[str]:
    """
    Return the label names that are not usable as Prometheus label names.

    Names must match [a-zA-Z_][a-zA-Z0-9_]* and must not start with ``__``.
    """
    invalid = []
    for name in label_names:
        if not LABEL_NAME_RE.match(name) or name.startswith(RESERVED_LABEL_PREFIX):
            invalid.append(name)
    return invalid

