"""Signal-driven portfolio rebalancer."""

__version__ = "1.0.0"
