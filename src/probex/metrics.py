"""
Core metric definitions for probex.

A MetricDescriptor is declared once per exporter at startup. Every pull
produces a fresh list of MetricSamples; nothing here survives a cycle.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class MetricKind(str, Enum):
    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass(frozen=True)
class MetricDescriptor:
    """Name, type and label schema for one exported metric."""

    namespace: str
    name: str
    kind: MetricKind = MetricKind.GAUGE
    help: str = ""
    labels: Tuple[str, ...] = ()

    @property
    def fqname(self) -> str:
        if not self.namespace:
            return self.name
        return f"{self.namespace}_{self.name}"


@dataclass(frozen=True)
class MetricSample:
    descriptor: MetricDescriptor
    label_values: Tuple[str, ...]
    value: float

    @property
    def labels(self) -> dict:
        return dict(zip(self.descriptor.labels, self.label_values))


@dataclass(frozen=True)
class ScrapeTarget:
    """Where and how to fetch. Built once from CLI options."""

    uri: Optional[str] = None
    pid: Optional[int] = None
    script: Optional[str] = None
    env_file: Optional[str] = None
    path: Optional[str] = None

    timeout: Optional[float] = 3.0
    content_type: str = ""
    user_agent: str = ""

    # Seconds between client certificate reloads, <= 0 disables certificates
    renew_interval: int = 600
    proxyfile: str = ""
