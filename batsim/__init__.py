"""Home battery simulation for time-series meter data."""

__version__ = "0.1.0"
