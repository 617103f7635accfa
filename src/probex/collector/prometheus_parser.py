"""
Reader for the Prometheus text exposition format.

Used by `probex inspect` to look at a running exporter, and by the tests
to check what the pull endpoint actually served. Handles HELP/TYPE
comments, labels with escaped quotes, and optional timestamps.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional


@dataclass
class ExposedSample:
    name: str
    labels: Dict[str, str]
    value: float


@dataclass
class ExposedFamily:
    name: str
    metric_type: str = "untyped"
    help_text: str = ""
    samples: List[ExposedSample] = field(default_factory=list)


# key="value" pairs; values may contain \" \\ and \n escapes
_LABEL_RE = re.compile(r'([a-zA-Z_][a-zA-Z0-9_]*)="((?:[^"\\]|\\.)*)"')
_SAMPLE_RE = re.compile(r'^([a-zA-Z_:][a-zA-Z0-9_:]*)(?:\{(.*)\})?\s+(\S+)(?:\s+\S+)?$')

_ESCAPES = {"\\\\": "\\", '\\"': '"', "\\n": "\n"}

# Suffixes prometheus_client appends to a family's own name
_SUFFIXES = ("_total", "_created", "_bucket", "_sum", "_count")


def _unescape(text: str) -> str:
    return re.sub(r'\\[\\"n]', lambda m: _ESCAPES[m.group(0)], text)


def parse_labels(label_str: str) -> Dict[str, str]:
    if not label_str:
        return {}
    return {k: _unescape(v) for k, v in _LABEL_RE.findall(label_str)}


def _family_name(sample_name: str, known: Dict[str, ExposedFamily]) -> str:
    if sample_name in known:
        return sample_name
    for suffix in _SUFFIXES:
        if sample_name.endswith(suffix) and sample_name[: -len(suffix)] in known:
            return sample_name[: -len(suffix)]
    return sample_name


def parse_exposition(text: str) -> Dict[str, ExposedFamily]:
    """Returns families keyed by the name used in their TYPE line."""
    families: Dict[str, ExposedFamily] = {}

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue

        if line.startswith("# HELP ") or line.startswith("# TYPE "):
            parts = line[7:].split(" ", 1)
            if len(parts) != 2:
                continue
            fam = families.setdefault(parts[0], ExposedFamily(name=parts[0]))
            if line.startswith("# HELP "):
                fam.help_text = _unescape(parts[1])
            else:
                fam.metric_type = parts[1]
            continue

        if line.startswith("#"):
            continue

        match = _SAMPLE_RE.match(line)
        if not match:
            continue
        name, label_str, value_str = match.groups()

        try:
            value = float(value_str)
        except ValueError:
            continue

        base = _family_name(name, families)
        fam = families.setdefault(base, ExposedFamily(name=base))
        fam.samples.append(ExposedSample(name=name, labels=parse_labels(label_str or ""), value=value))

    return families


def iter_samples(families: Dict[str, ExposedFamily]) -> Iterator[ExposedSample]:
    for fam in families.values():
        yield from fam.samples


def get_value(
    families: Dict[str, ExposedFamily],
    sample_name: str,
    **labels: str,
) -> Optional[float]:
    """Value of the first sample with this exact name whose labels include `labels`."""
    for sample in iter_samples(families):
        if sample.name != sample_name:
            continue
        if all(sample.labels.get(k) == v for k, v in labels.items()):
            return sample.value
    return None
