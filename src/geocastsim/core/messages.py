"""
Values exchanged between nodes during dissemination.

Nothing here ever signals failure by raising. "No message" is a value:
the sentinel payload with infinite budget, empty content and a negative
emission counter. Relay records that run out of radius are simply dropped.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Sequence

from geocastsim.core.metric import euclidean_distance_3d

NO_EMISSION = -1

Point = tuple[float, float, float]


@dataclass(frozen=True)
class SourcePayload:
    """
    What a source emits for one episode.

    remaining_budget is the radius declared by the source. It is fixed for the
    whole episode and carried unchanged along the gradient. origin_position is
    where the source stood when the episode started.
    """

    origin_id: int
    remaining_budget: float
    content: str
    emission_counter: int
    origin_position: Point | None = None

    @classmethod
    def sentinel(cls, origin_id: int) -> SourcePayload:
        """Bottom value: (origin_id, +inf, "", -1)."""
        return cls(origin_id, math.inf, "", NO_EMISSION)

    @property
    def is_sentinel(self) -> bool:
        return self.emission_counter <= 0 or not math.isfinite(self.remaining_budget)


@dataclass(frozen=True)
class GradientResult:
    """Nearest relevant source id and its (possibly bottom) payload."""

    source_id: int
    payload: SourcePayload

    @classmethod
    def bottom(cls, node_id: int) -> GradientResult:
        return cls(node_id, SourcePayload.sentinel(node_id))

    @property
    def is_bottom(self) -> bool:
        return self.payload.is_sentinel


@dataclass(frozen=True)
class MessageKey:
    """Identity of one message instance: (sender, emission)."""

    sender_id: int
    emission: int

    @property
    def is_valid(self) -> bool:
        return self.emission > 0


@dataclass(frozen=True)
class SourceDistance:
    """
    A relay record for one message.

    The source `to` declared `allowed_radius`; the record is currently held by
    `from_` and has covered `traveled` metric units so far. emission and content
    ride along so nodes several hops away can still register the message.
    """

    to: int
    from_: int
    allowed_radius: float
    traveled: float
    valid: bool
    emission: int = NO_EMISSION
    content: str = ""
    origin_position: Point | None = None

    @property
    def admissible(self) -> bool:
        return self.valid and self.traveled <= self.allowed_radius

    @property
    def key(self) -> MessageKey:
        return MessageKey(self.to, self.emission)

    def reaches(self, position: Sequence[float]) -> bool:
        """
        Whether a node at `position` lies within allowed_radius of the point
        where the episode started. Records without an origin position pass.
        """
        if self.origin_position is None:
            return True
        return euclidean_distance_3d(position, self.origin_position) <= self.allowed_radius

    def relayed(self, relay_id: int, hop: float) -> SourceDistance:
        """Copy of this record one hop further, now held by relay_id."""
        return replace(self, from_=relay_id, traveled=self.traveled + hop)
