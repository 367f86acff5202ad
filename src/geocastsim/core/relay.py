"""
Relay bookkeeping: turning neighbor announcements into deliverable records.

Two stages:
- save_new_message: one-hop reception. A neighbor that is itself a known
  sender announces its radius; if we sit inside it, we get a record.
- spread_new_message: multi-hop re-broadcast. Every node holding one-hop
  records this round is a relay source; a multi-source gradient-cast carries its records onward,
  adding the metric range of every hop to `traveled` and dropping records
  once they exceed their own radius.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

from geocastsim.core.context import RoundContext
from geocastsim.core.gradient import collect_sources, forward_sources, multi_gradient_cast
from geocastsim.core.messages import SourceDistance, SourcePayload

RelayTable = dict[int, list[SourceDistance]]  # origin id -> records

RELAY_SLOT = "relay"
RELAY_SOURCES_SLOT = "relay_sources"


def save_new_message(
    ctx: RoundContext,
    announcements: Mapping[int, Mapping[int, float]],
    senders: Mapping[int, SourcePayload],
) -> RelayTable:
    """
    Build one-hop relay records from the neighbors' radius announcements.

    Every entry (to, radius) a neighbor announced yields a SourceDistance
    with traveled = range to that neighbor. It is valid when `to` is a known
    sender, is not us, and the radius is finite (and agrees with the radius we
    know for that sender). Records are filed under the
    announcing neighbor and kept only when they are valid, within radius
    (by path and by our own position), and their target equals the key they
    are filed under.

    Args:
        ctx: This node's round context
        announcements: neighbor id -> {id: declared radius}
        senders: Known senders (origin id -> payload)

    Returns:
        {neighbor id: [admissible records]}; empty lists are omitted
    """
    admissible: RelayTable = {}

    for neighbor_id, announced in announcements.items():
        if neighbor_id not in senders or neighbor_id == ctx.node_id:
            continue

        traveled = ctx.distance_to(neighbor_id)
        records = []
        for to, radius in announced.items():
            known = senders.get(to)
            record = SourceDistance(
                to=to,
                from_=neighbor_id,
                allowed_radius=radius,
                traveled=traveled,
                valid=(
                    known is not None
                    and to != ctx.node_id
                    and math.isfinite(radius)
                    and math.isfinite(traveled)
                    and radius == known.remaining_budget
                ),
                emission=known.emission_counter if known is not None else -1,
                content=known.content if known is not None else "",
                origin_position=known.origin_position if known is not None else None,
            )
            if record.admissible and record.to == neighbor_id and record.reaches(ctx.position):
                records.append(record)

        if records:
            admissible[neighbor_id] = records

    return admissible


def _advance(relay_id: int, position: Sequence[float]):
    """
    Accumulator moving every record one hop further (relay_id now holds it).

    Records past their radius, by path or by position, are dropped.
    """

    def accumulate(from_source: float, to_neighbor: float, table: RelayTable) -> RelayTable:
        # `traveled` already includes every earlier hop, from_source is not re-added
        advanced = {}
        for origin, records in table.items():
            kept = [
                moved
                for moved in (r.relayed(relay_id, to_neighbor) for r in records)
                if moved.traveled <= moved.allowed_radius and moved.reaches(position)
            ]
            if kept:
                advanced[origin] = kept
        return advanced

    return accumulate


def spread_new_message(
    ctx: RoundContext,
    incoming: RelayTable,
    is_relay: bool,
) -> dict[int, RelayTable]:
    """
    Re-broadcast held records through a multi-source gradient-cast.

    Args:
        ctx: This node's round context
        incoming: Records this node holds (it sources them when is_relay)
        is_relay: Whether this node acts as a relay source this round

    Returns:
        {relay source id: {origin: records}} reaching this node, excluding
        its own relay id and anything that ran out of radius
    """
    sources = collect_sources(ctx, RELAY_SOURCES_SLOT, include_self=is_relay)
    spread = multi_gradient_cast(
        ctx,
        RELAY_SLOT,
        sources=sources,
        local=incoming if is_relay else {},
        accumulate=_advance(ctx.node_id, ctx.position),
    )
    forward_sources(ctx, RELAY_SOURCES_SLOT, sources, spread, include_self=is_relay)

    return {
        relay_id: cast.value
        for relay_id, cast in spread.items()
        if relay_id != ctx.node_id and cast.value
    }
