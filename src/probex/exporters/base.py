"""
What an exporter is, declaratively: a source, a field table, and what to
publish when the source fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from probex.collector.base import SourceAdapter
from probex.errors import CommandFailed, ScrapeError
from probex.mapping.fields import Field
from probex.metrics import ScrapeTarget

# Returns a substitute snapshot, or None to publish only the failure counter
Fallback = Callable[[ScrapeError], Optional[dict]]


def zero_fallback(error: ScrapeError) -> Optional[dict]:
    """Publish every declared field as zero, unless the command never produced output."""
    if isinstance(error, CommandFailed):
        return None
    return {}


@dataclass(frozen=True)
class ExporterDefinition:
    key: str
    description: str
    namespace: str
    address: str
    fields: Tuple[Field, ...]
    build_source: Callable[[ScrapeTarget], SourceAdapter]
    fallback: Fallback = zero_fallback
    endpoint: str = "/metrics"
    default_uri: str = ""
