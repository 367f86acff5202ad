"""
SourceRoleManager: decides, each round, whether a node is a message source.

This is how messages enter the network:
- An idle node draws against activation_probability every round
- On success it becomes Active: a new emission id, a frozen radius, a payload
- It stays Active for at least min_active_duration
- It then cools down for cooldown_duration before it may draw again

The manager is purely local. It never looks at neighbor data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from geocastsim.core.messages import SourcePayload
from geocastsim.core.metric import as_position
from geocastsim.core.state import NodeState, RoleState

logger = logging.getLogger(__name__)


def default_message(node_id: int, emission: int) -> str:
    return f"Hello! I'm device {node_id}"


@dataclass
class SourceRoleConfig:
    """Configuration for the source role state machine."""

    activation_probability: float = 0.25  # Per-round draw while Idle
    min_active_duration: float = 15.0  # Time units a source stays Active
    cooldown_duration: float = 15.0  # Time units before the next draw
    radius_range: tuple[int, int] = (5, 19)  # Inclusive bounds of the radius draw
    message_factory: Callable[[int, int], str] = field(default=default_message)

    def __post_init__(self):
        if not 0.0 <= self.activation_probability <= 1.0:
            raise ValueError(
                f"activation_probability must be in [0, 1], got {self.activation_probability}"
            )
        if self.min_active_duration < 0 or self.cooldown_duration < 0:
            raise ValueError("Role durations must be non-negative")
        low, high = self.radius_range
        if low < 0 or high < low:
            raise ValueError(f"Invalid radius_range {self.radius_range}")

    @classmethod
    def simple(cls) -> SourceRoleConfig:
        """Fresh 25% draw with no minimum episode length and no cooldown."""
        return cls(activation_probability=0.25, min_active_duration=0.0, cooldown_duration=0.0)

    @classmethod
    def silent(cls) -> SourceRoleConfig:
        """A node that never becomes a source."""
        return cls(activation_probability=0.0)


class SourceRoleManager:
    """
    Idle -> Active -> Cooldown -> Idle, evaluated once per round.

    Transitions:
    - Idle: draw; success enters Active (emission_counter += 1, radius frozen)
    - Active: leave for Cooldown once now - source_since >= min_active_duration
    - Cooldown: back to Idle once now - last_role_flip >= cooldown_duration;
      the next draw happens on the following round
    """

    def __init__(self, config: SourceRoleConfig | None = None):
        self.config = config or SourceRoleConfig()

    def step(
        self,
        state: NodeState,
        now: float,
        rng: np.random.Generator,
        position: Sequence[float] | None = None,
    ) -> SourcePayload | None:
        """
        Advance the role of one node.

        `position` is frozen into the payload when a new episode starts.

        Returns:
            The payload being emitted this round, or None when not a source
        """
        cfg = self.config

        if state.role is RoleState.ACTIVE:
            if now - state.source_since >= cfg.min_active_duration:
                self._deactivate(state, now)

        elif state.role is RoleState.COOLDOWN:
            if now - state.last_role_flip >= cfg.cooldown_duration:
                state.role = RoleState.IDLE
                logger.debug("Node %d idle again at t=%.2f", state.node_id, now)

        else:
            state.last_attempt = now
            if rng.random() < cfg.activation_probability:
                self._activate(state, now, rng, position)

        return state.current_message if state.is_source else None

    def _activate(
        self,
        state: NodeState,
        now: float,
        rng: np.random.Generator,
        position: Sequence[float] | None,
    ) -> None:
        low, high = self.config.radius_range
        radius = float(rng.integers(low, high, endpoint=True))
        origin = tuple(as_position(position).tolist()) if position is not None else None

        state.emission_counter += 1
        state.current_message = SourcePayload(
            origin_id=state.node_id,
            remaining_budget=radius,
            content=self.config.message_factory(state.node_id, state.emission_counter),
            emission_counter=state.emission_counter,
            origin_position=origin,
        )
        state.role = RoleState.ACTIVE
        state.is_source = True
        state.source_since = now
        state.last_role_flip = now

        logger.debug(
            "Node %d became a source at t=%.2f (emission=%d, radius=%.1f)",
            state.node_id,
            now,
            state.emission_counter,
            radius,
        )

    def _deactivate(self, state: NodeState, now: float) -> None:
        state.role = RoleState.COOLDOWN
        state.is_source = False
        state.current_message = None
        state.last_role_flip = now

        logger.debug("Node %d cooling down at t=%.2f", state.node_id, now)
