"""MEV Sentinel - heuristic MEV detection over confirmed blocks."""

__version__ = "0.1.0"
