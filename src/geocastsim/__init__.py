"""
geocastsim: Aggregate Geocast Dissemination Simulator

A round-synchronous simulator of a field-based geocast protocol running on a
dynamic spatial network of nodes.

Core concepts:
- Each node sees only its own state and its neighbors' previous-round values
- Sources appear at random, hold the role for a while, then cool down
- A gradient-cast carries a source's message outward until its radius runs out
- Relays re-broadcast known messages hop by hop, bounded by the same radius
- Every node registers each distinct message exactly once
"""

from geocastsim.logging_config import configure_logging, get_logger

__version__ = "0.1.0"

__all__ = ["__version__", "configure_logging", "get_logger"]
