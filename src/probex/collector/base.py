"""
Base source adapter interface.

A source adapter is anything that can produce one raw status snapshot:
an HTTP status page, a local process, an external script. Keeping them
behind one interface lets the exporter stay ignorant of where the data
actually comes from.
"""

from abc import ABC, abstractmethod

from probex.mapping.value import Value


class SourceAdapter(ABC):
    """Interface for all scrape sources."""

    @abstractmethod
    def fetch(self) -> Value:
        """Fetch one raw snapshot. Raises a ScrapeError subclass on failure."""
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...

    def close(self):
        pass
