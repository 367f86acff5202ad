"""
RoundScheduler: round-synchronous execution of a kernel on every node.

Each round:
1. Sample this round's positions (anchors plus optional jitter)
2. Rebuild the neighbor table from those positions
3. Evaluate the kernel on every node against the PREVIOUS round's exports
4. Swap in the new exports only after every node has run

There is no shared mutable state between nodes: each node mutates only its
own NodeState, and neighbors see its exports one round later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from geocastsim.core.context import RoundContext
from geocastsim.core.kernel import Kernel
from geocastsim.core.messages import MessageKey, SourcePayload
from geocastsim.core.network import Network
from geocastsim.core.state import NodeState

logger = logging.getLogger(__name__)


@dataclass
class SchedulerConfig:
    """Configuration for the round scheduler."""

    round_duration: float = 1.0  # Simulation time elapsed per round
    seed: int | None = None  # Seed for the rng handed to kernels
    log_interval: int = 100  # Progress line every N rounds

    def __post_init__(self):
        if self.round_duration <= 0:
            raise ValueError(f"round_duration must be positive, got {self.round_duration}")
        if self.log_interval <= 0:
            raise ValueError(f"log_interval must be positive, got {self.log_interval}")


@dataclass(frozen=True)
class EmissionRecord:
    """A new source episode, as observed by the scheduler."""

    round: int
    time: float
    payload: SourcePayload
    position: np.ndarray  # Origin position in the round it started

    @property
    def key(self) -> MessageKey:
        return MessageKey(self.payload.origin_id, self.payload.emission_counter)


@dataclass
class RoundScheduler:
    """Runs a kernel on every node of a network, one round at a time."""

    network: Network
    kernel: Kernel
    config: SchedulerConfig = field(default_factory=SchedulerConfig)

    current_round: int = field(default=0, init=False)
    states: dict[int, NodeState] = field(default=None, init=False)
    reports: dict[int, Any] = field(default_factory=dict, init=False)
    emissions: list[EmissionRecord] = field(default_factory=list, init=False)
    _exports: dict[int, dict[str, Any]] = field(default_factory=dict, init=False)
    _rng: np.random.Generator = field(default=None, init=False)

    def __post_init__(self):
        self.states = {nid: self.kernel.create_state(nid) for nid in self.network.iter_nodes()}
        self._rng = np.random.default_rng(self.config.seed)

    @property
    def time(self) -> float:
        """Simulation time of the next round."""
        return self.current_round * self.config.round_duration

    def run(self, n_rounds: int) -> dict:
        """Run the simulation for n_rounds and return summary statistics."""
        for _ in range(n_rounds):
            self.step()

        stats = self.statistics()
        stats["n_rounds"] = n_rounds
        logger.info(
            "Ran %d rounds: %d emissions, %d deliveries, %d active sources",
            n_rounds,
            stats["emissions"],
            stats["total_received"],
            stats["active_sources"],
        )
        return stats

    def step(self) -> None:
        """Evaluate one round on every node."""
        now = self.time
        positions = self.network.sample_positions(self._rng)
        neighbors = self.network.neighbor_table(positions)
        previous = self._exports
        exports: dict[int, dict[str, Any]] = {}

        for nid in self.network.iter_nodes():
            state = self.states[nid]
            emitted_before = state.emission_counter

            ctx = RoundContext(
                node_id=nid,
                position=positions[nid],
                time=now,
                neighbors=neighbors[nid],
                previous_exports=previous,
                rng=self._rng,
            )
            self.reports[nid] = self.kernel.step(ctx, state)
            exports[nid] = ctx.exports

            if state.emission_counter > emitted_before and state.current_message is not None:
                self.emissions.append(
                    EmissionRecord(
                        round=self.current_round,
                        time=now,
                        payload=state.current_message,
                        position=positions[nid].copy(),
                    )
                )

        self._exports = exports
        self.current_round += 1

        if self.current_round % self.config.log_interval == 0:
            logger.debug(
                "Round %d: nodes=%d, sources=%d, deliveries=%d",
                self.current_round,
                len(self.states),
                sum(s.is_source for s in self.states.values()),
                sum(len(s.store) for s in self.states.values()),
            )

    def statistics(self) -> dict:
        received = np.array([len(s.store) for s in self.states.values()], dtype=np.int64)
        return {
            "current_round": self.current_round,
            "emissions": len(self.emissions),
            "total_received": int(received.sum()),
            "mean_received": float(received.mean()) if received.size else 0.0,
            "active_sources": sum(s.is_source for s in self.states.values()),
        }

    def node_snapshot(self, node_id: int) -> dict[str, Any]:
        """Flat key/value view of one node's state."""
        return self.states[node_id].snapshot()
