"""Registry of every exporter probex knows how to run."""

from typing import Dict

from probex.exporters import cpy, das2go, eos, http, process, quota, reqmgr, wmcore
from probex.exporters.base import ExporterDefinition

REGISTRY: Dict[str, ExporterDefinition] = {
    mod.DEFINITION.key: mod.DEFINITION
    for mod in (http, cpy, das2go, reqmgr, wmcore, process, quota, eos)
}


def get_definition(key: str) -> ExporterDefinition:
    try:
        return REGISTRY[key]
    except KeyError:
        raise KeyError(f"unknown exporter {key!r}, expected one of {sorted(REGISTRY)}") from None
