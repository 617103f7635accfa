"""
The publisher: one scrape-map cycle per pull, one cycle at a time.

Exporter is a prometheus_client custom collector. The registry calls
collect() on every request to the pull endpoint; collect() takes the
exporter's lock, fetches one snapshot, maps it and hands the families back.
Concurrent pulls queue on the lock and get their own cycle.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from probex.collector.base import SourceAdapter
from probex.errors import ScrapeError
from probex.exporters.base import ExporterDefinition, Fallback, zero_fallback
from probex.mapping.fields import Field, descriptors, map_snapshot
from probex.metrics import MetricDescriptor, MetricKind, MetricSample, ScrapeTarget

log = logging.getLogger(__name__)


class ScrapeState(str, Enum):
    IDLE = "idle"
    SCRAPING = "scraping"
    MAPPING = "mapping"
    PUBLISHING = "publishing"


class Exporter:

    def __init__(
        self,
        source: SourceAdapter,
        fields: Sequence[Field],
        namespace: str,
        fallback: Fallback = zero_fallback,
        name: Optional[str] = None,
    ):
        self._source = source
        self._fields = tuple(fields)
        self._namespace = namespace
        self._fallback = fallback
        self._name = name or source.name()

        self._lock = threading.Lock()
        self._failures = 0
        self.state = ScrapeState.IDLE

        self._failure_desc = MetricDescriptor(
            namespace=namespace,
            name="scrape_failures",
            kind=MetricKind.COUNTER,
            help="Number of scrapes that failed to fetch or map the source",
        )

    @classmethod
    def from_definition(
        cls,
        definition: ExporterDefinition,
        target: ScrapeTarget,
        namespace: Optional[str] = None,
    ) -> "Exporter":
        return cls(
            source=definition.build_source(target),
            fields=definition.fields,
            namespace=definition.namespace if namespace is None else namespace,
            fallback=definition.fallback,
            name=definition.key,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def failures(self) -> int:
        return self._failures

    def scrape(self) -> List[MetricSample]:
        """Run one full cycle under the lock and return its samples."""
        with self._lock:
            try:
                return self._cycle()
            finally:
                self.state = ScrapeState.IDLE

    def _cycle(self) -> List[MetricSample]:
        started = time.perf_counter()
        self.state = ScrapeState.SCRAPING
        try:
            snapshot = self._source.fetch()
            self.state = ScrapeState.MAPPING
            samples = map_snapshot(snapshot, self._fields, self._namespace)
        except Exception as exc:
            samples = self._on_failure(exc)
        else:
            log.debug("%s: %d samples in %.3fs", self._name, len(samples),
                      time.perf_counter() - started)

        self.state = ScrapeState.PUBLISHING
        samples.append(MetricSample(self._failure_desc, (), float(self._failures)))
        return samples

    def _on_failure(self, exc: Exception) -> List[MetricSample]:
        self._failures += 1
        if isinstance(exc, ScrapeError):
            log.warning("%s: scrape failed: %s", self._name, exc)
        else:
            log.exception("%s: unexpected error during scrape", self._name)

        substitute = self._fallback(exc)
        if substitute is None:
            return []
        try:
            return map_snapshot(substitute, self._fields, self._namespace)
        except Exception:
            # Only the failure counter is left to publish
            log.exception("%s: fallback snapshot could not be mapped", self._name)
            return []

    # prometheus_client collector protocol

    def collect(self) -> Iterator[Metric]:
        return iter(to_families(self.scrape()))

    def describe(self) -> Iterator[Metric]:
        # Empty families, so registering never triggers a fetch
        descs = descriptors(self._fields, self._namespace) + [self._failure_desc]
        families: Dict[str, Metric] = {}
        for desc in descs:
            if desc.fqname not in families:
                families[desc.fqname] = _family(desc)
        return iter(list(families.values()))

    def close(self):
        self._source.close()


def _family(desc: MetricDescriptor) -> Metric:
    if desc.kind is MetricKind.COUNTER:
        return CounterMetricFamily(desc.fqname, desc.help, labels=desc.labels)
    return GaugeMetricFamily(desc.fqname, desc.help, labels=desc.labels)


def to_families(samples: Sequence[MetricSample]) -> List[Metric]:
    """Group samples into metric families, keeping declaration order."""
    families: Dict[str, Metric] = {}
    for sample in samples:
        desc = sample.descriptor
        fam = families.get(desc.fqname)
        if fam is None:
            fam = families[desc.fqname] = _family(desc)
        fam.add_metric(list(sample.label_values), sample.value)
    return list(families.values())
