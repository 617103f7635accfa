"""
Declarative field tables and the one routine that applies them.

An exporter is just an ordered tuple of Fields. map_snapshot() walks it
against a decoded status page and returns samples; it has no side effects
and never raises for missing or mistyped data; those fields publish 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from probex.mapping.value import Kind, Segment, Value
from probex.metrics import MetricDescriptor, MetricKind, MetricSample

# (label values, numeric value) pairs produced for one field
Points = List[Tuple[Tuple[str, ...], float]]
Extractor = Callable[[Value], Points]


@dataclass(frozen=True)
class Field:
    path: Tuple[Segment, ...]
    name: str
    kind: MetricKind = MetricKind.GAUGE
    help: str = ""
    labels: Tuple[str, ...] = ()
    extract: Optional[Extractor] = None

    def descriptor(self, namespace: str) -> MetricDescriptor:
        return MetricDescriptor(
            namespace=namespace,
            name=self.name,
            kind=self.kind,
            help=self.help or self.name.replace("_", " "),
            labels=self.labels,
        )


def gauge(path, name: str, help: str = "", **kwargs) -> Field:
    if isinstance(path, (str, int)) or callable(path):
        path = (path,)
    return Field(tuple(path), name, MetricKind.GAUGE, help, **kwargs)


def counter(path, name: str, help: str = "", **kwargs) -> Field:
    if isinstance(path, (str, int)) or callable(path):
        path = (path,)
    return Field(tuple(path), name, MetricKind.COUNTER, help, **kwargs)


# ---------- extractors ----------

def scalar(node: Value) -> Points:
    return [((), node.number())]


def count(node: Value) -> Points:
    """Length of a list; 0 when absent or not a list."""
    return [((), float(len(node.items())))]


def mean(node: Value) -> Points:
    values = [item.number() for item in node.items()]
    if not values:
        return [((), 0.0)]
    return [((), sum(values) / len(values))]


def per_core(node: Value) -> Points:
    """One sample per list element, labelled core-0, core-1, ... in input order."""
    return [((f"core-{i}",), item.number()) for i, item in enumerate(node.items())]


def per_key(subkey: str) -> Extractor:
    """One sample per object entry, labelled by the entry's key."""

    def _extract(node: Value) -> Points:
        return [((key,), child.get(subkey).number()) for key, child in node.entries()]

    return _extract


CONNECTION_STATES = ("total", "established", "listen", "other")

_STATE_ALIASES = {
    "ESTABLISHED": "established",
    "LISTEN": "listen",
}


def connection_status(entry: Value) -> str:
    """Status string of one connection entry.

    psutil-style pages serialise a connection either as an object with a
    "status" key or as a plain list whose last element is the status.
    """
    if entry.kind is Kind.OBJECT:
        return entry.get("status").string()
    items = entry.items()
    if items:
        return items[-1].string()
    return ""


def classify_connections(entries: Sequence[Value]) -> dict:
    counts = dict.fromkeys(CONNECTION_STATES, 0)
    for entry in entries:
        counts[_STATE_ALIASES.get(connection_status(entry), "other")] += 1
    counts["total"] = len(entries)
    return counts


def connection_states(node: Value) -> Points:
    counts = classify_connections(node.items())
    return [((state,), float(counts[state])) for state in CONNECTION_STATES]


# ---------- mapping ----------

def map_snapshot(snapshot: Any, fields: Sequence[Field], namespace: str) -> List[MetricSample]:
    """Apply a field table to one decoded snapshot.

    Every field is evaluated before anything is returned, and every scalar
    field yields a sample even when its path is missing.
    """
    root = Value.wrap(snapshot)
    samples: List[MetricSample] = []

    for fld in fields:
        desc = fld.descriptor(namespace)
        extractor = fld.extract or scalar
        for label_values, value in extractor(root.path(*fld.path)):
            samples.append(MetricSample(desc, label_values, value))

    return samples


def descriptors(fields: Sequence[Field], namespace: str) -> List[MetricDescriptor]:
    return [fld.descriptor(namespace) for fld in fields]
