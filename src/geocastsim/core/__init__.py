"""
Core engine primitives.

This layer knows NOTHING about delivery ratios or global coverage.
It only knows:
- Nodes with local persistent state
- Neighbor ranges and one-round-old neighbor exports
- Gradient-cast fields (single and multi-source)
- The source role state machine
- Relay records and the per-node message store

RoundScheduler drives a Kernel over a Network, one synchronous round at a time.
"""

from geocastsim.core.context import RoundContext, map_neighborhood
from geocastsim.core.gradient import (
    CastResult,
    collect_sources,
    forward_sources,
    gradient_cast,
    multi_gradient_cast,
    radius_cutoff,
)
from geocastsim.core.kernel import GeocastKernel, Kernel
from geocastsim.core.messages import GradientResult, MessageKey, SourceDistance, SourcePayload
from geocastsim.core.metric import euclidean_distance_3d, euclidean_distances
from geocastsim.core.network import Network, NetworkConfig
from geocastsim.core.relay import save_new_message, spread_new_message
from geocastsim.core.roles import SourceRoleConfig, SourceRoleManager
from geocastsim.core.scheduler import EmissionRecord, RoundScheduler, SchedulerConfig
from geocastsim.core.state import NodeState, RoleState
from geocastsim.core.store import MessageStore

__all__ = [
    "RoundContext",
    "map_neighborhood",
    "CastResult",
    "collect_sources",
    "forward_sources",
    "gradient_cast",
    "multi_gradient_cast",
    "radius_cutoff",
    "GeocastKernel",
    "Kernel",
    "GradientResult",
    "MessageKey",
    "SourceDistance",
    "SourcePayload",
    "euclidean_distance_3d",
    "euclidean_distances",
    "Network",
    "NetworkConfig",
    "save_new_message",
    "spread_new_message",
    "SourceRoleConfig",
    "SourceRoleManager",
    "EmissionRecord",
    "RoundScheduler",
    "SchedulerConfig",
    "NodeState",
    "RoleState",
    "MessageStore",
]
