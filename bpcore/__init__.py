"""Bitcoin transaction primitives and opret/tapret deterministic bitcoin commitments."""

__version__ = "0.12.0"