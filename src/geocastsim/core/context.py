"""
RoundContext: one node's view of the world for one round.

A node can only see:
- its own id, position and the current simulation time
- the metric range to each current neighbor
- what each neighbor exported during the PREVIOUS round

Exports written during this round become visible to neighbors next round.
The scheduler swaps the export tables only after every node has run, so no
node ever observes a neighbor's in-progress round.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Mapping, TypeVar

import numpy as np

T = TypeVar("T")


class RoundContext:
    """Environment snapshot handed to a kernel for a single node evaluation."""

    def __init__(
        self,
        node_id: int,
        position: np.ndarray,
        time: float,
        neighbors: Mapping[int, float],
        previous_exports: Mapping[int, Mapping[str, Any]],
        rng: np.random.Generator,
    ):
        """
        Args:
            node_id: Id of the evaluating node
            position: Its position this round, shape (3,)
            time: Simulation time of this round
            neighbors: neighbor id -> metric range (self excluded)
            previous_exports: node id -> {slot: value} from the previous round
            rng: Random generator for local draws
        """
        self.node_id = node_id
        self.position = position
        self.time = time
        self.rng = rng
        self._neighbors = dict(neighbors)
        self._previous = previous_exports
        self.exports: dict[str, Any] = {}

    @property
    def neighbor_ids(self) -> list[int]:
        """Current neighbors in ascending id order (self excluded)."""
        return sorted(self._neighbors)

    def distance_to(self, neighbor_id: int) -> float:
        """Metric range to a neighbor; 0 for self, +inf for non-neighbors."""
        if neighbor_id == self.node_id:
            return 0.0
        return self._neighbors.get(neighbor_id, math.inf)

    def neighbor_values(self, slot: str) -> dict[int, Any]:
        """
        Previous-round values of `slot` from current neighbors.

        Neighbors that did not export the slot (newcomers, first round) are
        absent from the result rather than defaulted.
        """
        values = {}
        for nid in self.neighbor_ids:
            exported = self._previous.get(nid)
            if exported is not None and slot in exported:
                values[nid] = exported[slot]
        return values

    def export(self, slot: str, value: Any) -> None:
        """Publish a value for neighbors to read next round."""
        self.exports[slot] = value


def map_neighborhood(ctx: RoundContext, fn: Callable[[int], T]) -> dict[int, T]:
    """Apply fn to every id in the neighborhood, self included."""
    return {nid: fn(nid) for nid in [ctx.node_id, *ctx.neighbor_ids]}
