"""
Per-node persistent state.

Owned by exactly one node and mutated only by that node's own round
evaluation. Other nodes never read it; everything they learn comes through
exported field values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from geocastsim.core.messages import SourceDistance, SourcePayload
from geocastsim.core.store import MessageStore


class RoleState(Enum):
    """Source role lifecycle."""

    IDLE = "idle"
    ACTIVE = "active"
    COOLDOWN = "cooldown"


@dataclass
class NodeState:
    """Everything a node carries from one round to the next."""

    node_id: int

    # Source role
    role: RoleState = RoleState.IDLE
    is_source: bool = False
    source_since: float | None = None
    last_role_flip: float = 0.0
    last_attempt: float | None = None  # time of the last activation draw
    emission_counter: int = 0
    current_message: SourcePayload | None = None

    # Dissemination
    store: MessageStore = field(init=False)
    relays: dict[int, list[SourceDistance]] = field(default_factory=dict)  # this round's working set

    def __post_init__(self):
        self.store = MessageStore(owner_id=self.node_id)

    @property
    def payload(self) -> SourcePayload:
        """Current payload, or the sentinel when not emitting."""
        if self.current_message is None:
            return SourcePayload.sentinel(self.node_id)
        return self.current_message

    def snapshot(self) -> dict[str, Any]:
        """
        Flat key/value view of the state.

        Keys match the per-node property bag used by simulator front-ends;
        absent values come back as typed defaults (False / 0 / empty / inf).
        """
        payload = self.payload
        return {
            "isSource": self.is_source,
            "sourceSince": self.source_since if self.source_since is not None else 0.0,
            "emissionCounter": self.emission_counter,
            "message": payload.content,
            "distance": payload.remaining_budget if not payload.is_sentinel else math.inf,
            "messagesReceived": len(self.store),
            "messageHistory": [
                (key.sender_id, key.emission, content) for key, content in self.store.history
            ],
            "lastAttempt": self.last_attempt if self.last_attempt is not None else 0.0,
        }
