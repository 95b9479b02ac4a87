"""WikiWisch — infinite-scroll content aggregator."""

__version__ = "0.1.0"
