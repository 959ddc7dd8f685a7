"""threatwatch - threat detection, aggregation and adaptive response engine."""

__version__ = "0.1.0"
