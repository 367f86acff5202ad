"""
Network: the spatial deployment the protocol runs on.

The network stores ONLY environment primitives:
- Anchor position of every node
- Communication range (who counts as a neighbor)
- Optional per-round position jitter

It does NOT store protocol state. Node ids are positions in the anchor array,
0..n_nodes-1, and stay stable for the lifetime of the network.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np
from scipy.spatial import cKDTree

from geocastsim.core.metric import as_position, pair_distances


@dataclass
class NetworkConfig:
    """Configuration for a random 3-D deployment."""

    n_nodes: int
    width: float = 100.0  # Extent along x
    height: float = 100.0  # Extent along y
    depth: float = 0.0  # Extent along z (0 keeps the deployment planar)
    comm_range: float = 15.0  # Nodes closer than this are neighbors
    jitter: float = 0.0  # Per-round uniform offset on x and y, in [-jitter, jitter)
    seed: int | None = None  # Seed for anchor placement

    def __post_init__(self):
        if self.n_nodes < 0:
            raise ValueError(f"n_nodes must be non-negative, got {self.n_nodes}")
        if self.comm_range <= 0:
            raise ValueError(f"comm_range must be positive, got {self.comm_range}")
        if min(self.width, self.height, self.depth) < 0:
            raise ValueError("Deployment extents must be non-negative")
        if self.jitter < 0:
            raise ValueError(f"jitter must be non-negative, got {self.jitter}")


class Network:
    """
    Node placement plus the neighbor relation derived from it.

    The neighbor table is rebuilt from scratch every round: nodes move (or
    jitter), links appear and vanish, and nothing about the topology is
    assumed durable.
    """

    def __init__(self, config: NetworkConfig, positions: np.ndarray | None = None):
        self.config = config

        if positions is None:
            rng = np.random.default_rng(config.seed)
            extent = np.array([config.width, config.height, config.depth])
            positions = rng.random((config.n_nodes, 3)) * extent

        positions = np.asarray(positions, dtype=np.float64)
        if positions.shape != (config.n_nodes, 3):
            raise ValueError(
                f"Expected positions of shape ({config.n_nodes}, 3), got {positions.shape}"
            )
        self.positions = positions.copy()

    @classmethod
    def from_positions(
        cls,
        positions: Sequence[Sequence[float]],
        comm_range: float,
        jitter: float = 0.0,
    ) -> Network:
        """Build a network from explicit coordinates (2-D or 3-D per node)."""
        anchors = np.array([as_position(p) for p in positions], dtype=np.float64).reshape(-1, 3)
        config = NetworkConfig(n_nodes=len(anchors), comm_range=comm_range, jitter=jitter)
        return cls(config, positions=anchors)

    @property
    def n_nodes(self) -> int:
        return self.config.n_nodes

    @property
    def node_ids(self) -> list[int]:
        return list(range(self.n_nodes))

    def iter_nodes(self) -> Iterator[int]:
        """Iterate over node ids in ascending order."""
        yield from range(self.n_nodes)

    def position_of(self, node_id: int) -> np.ndarray:
        """Anchor position of a node (copy)."""
        return self.positions[node_id].copy()

    def move_node(self, node_id: int, position: Sequence[float]) -> None:
        """Relocate a node's anchor; takes effect from the next round."""
        self.positions[node_id] = as_position(position)

    def sample_positions(self, rng: np.random.Generator) -> np.ndarray:
        """
        Positions for this round.

        With jitter > 0 every node reports a random point near its anchor:
        x and y move by U[-jitter, jitter), z is left untouched.
        """
        if self.config.jitter <= 0:
            return self.positions.copy()
        offsets = rng.uniform(-self.config.jitter, self.config.jitter, size=(self.n_nodes, 2))
        sampled = self.positions.copy()
        sampled[:, :2] += offsets
        return sampled

    def neighbor_table(self, positions: np.ndarray) -> dict[int, dict[int, float]]:
        """
        Neighbor relation for one round.

        Returns:
            node id -> {neighbor id: metric range}, self excluded. Symmetric.
        """
        table: dict[int, dict[int, float]] = {nid: {} for nid in range(len(positions))}
        if len(positions) < 2:
            return table

        tree = cKDTree(positions)
        pairs = tree.query_pairs(r=self.config.comm_range, output_type="ndarray")
        ranges = pair_distances(positions, pairs)

        for (i, j), d in zip(pairs.tolist(), ranges.tolist()):
            table[i][j] = d
            table[j][i] = d
        return table
