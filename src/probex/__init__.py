"""probex - scrape status pages and republish them as Prometheus metrics."""

__version__ = "0.4.0"
