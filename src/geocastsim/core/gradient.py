"""
Gradient-cast: self-stabilizing distance fields that carry a value outward.

Every round a source reports itself at distance 0 with its local value. Every
other node looks at its neighbors' previous-round results, extends each by the
metric range to that neighbor, lets `accumulate` transform the carried value,
and keeps the shortest candidate whose value survived.

Nothing is remembered between rounds except the neighbors' last exports, so
the field is re-derived from scratch each round. When sources move or
disappear, stale distances grow until the carried radius rejects them.

LOCAL RULE: the engine only touches RoundContext. It never looks at positions
or state of other nodes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar

from geocastsim.core.context import RoundContext
from geocastsim.core.messages import GradientResult

V = TypeVar("V")

# accumulate(from_source, to_neighbor, neighbor_value) -> value
Accumulator = Callable[[float, float, V], V]


@dataclass(frozen=True)
class CastResult(Generic[V]):
    """Accumulated distance to the chosen source and the value it carries."""

    distance: float
    value: V


def _nearest(
    candidates: Mapping[int, CastResult],
    accumulate: Accumulator,
    is_bottom: Callable[[Any], bool] | None,
    metric: Callable[[int], float],
) -> CastResult | None:
    """Shortest surviving extension of the neighbors' results (ties: lowest id)."""
    best = None
    for nid in sorted(candidates):
        previous = candidates[nid]
        if not math.isfinite(previous.distance):
            continue
        to_neighbor = metric(nid)
        total = previous.distance + to_neighbor
        if not math.isfinite(total):
            continue
        if best is not None and total >= best.distance:
            continue
        value = accumulate(previous.distance, to_neighbor, previous.value)
        if is_bottom is not None and is_bottom(value):
            continue
        best = CastResult(total, value)
    return best


def gradient_cast(
    ctx: RoundContext,
    slot: str,
    source: bool,
    local: V,
    accumulate: Accumulator,
    is_bottom: Callable[[V], bool] | None = None,
    metric: Callable[[int], float] | None = None,
) -> CastResult[V]:
    """
    Single-source gradient-cast.

    Args:
        ctx: This node's round context
        slot: Export slot aligning this gradient across nodes
        source: Whether this node is a source this round
        local: Value a source emits; also the fallback when nothing reaches us
        accumulate: (from_source, to_neighbor, neighbor_value) -> value
        is_bottom: Rejects accumulated values (a rejected path is not a path)
        metric: neighbor id -> distance; defaults to ctx.distance_to

    Returns:
        CastResult(distance, value). (inf, local) when no source is reachable.
    """
    metric = metric or ctx.distance_to

    if source:
        result = CastResult(0.0, local)
    else:
        result = _nearest(ctx.neighbor_values(slot), accumulate, is_bottom, metric)
        if result is None:
            result = CastResult(math.inf, local)

    ctx.export(slot, result)
    return result


def _is_empty(value: Any) -> bool:
    return not value


def multi_gradient_cast(
    ctx: RoundContext,
    slot: str,
    sources: Iterable[int],
    local: V,
    accumulate: Accumulator,
    is_bottom: Callable[[V], bool] = _is_empty,
    metric: Callable[[int], float] | None = None,
) -> dict[int, CastResult[V]]:
    """
    One gradient-cast per source id, aligned by id.

    Neighbors export {source_id: CastResult}; for every id in `sources` this
    node computes its own entry from the neighbors' entries for the same id.
    The node is the source of the gradient keyed by its own id.

    Returns:
        {source_id: CastResult} for every id with a surviving (non-bottom) value
    """
    metric = metric or ctx.distance_to
    neighbor_maps = ctx.neighbor_values(slot)

    results: dict[int, CastResult[V]] = {}
    for source_id in sorted(set(sources)):
        if source_id == ctx.node_id:
            if not is_bottom(local):
                results[source_id] = CastResult(0.0, local)
            continue

        candidates = {
            nid: entries[source_id]
            for nid, entries in neighbor_maps.items()
            if source_id in entries
        }
        best = _nearest(candidates, accumulate, is_bottom, metric)
        if best is not None:
            results[source_id] = best

    ctx.export(slot, results)
    return results


def collect_sources(ctx: RoundContext, slot: str, include_self: bool) -> set[int]:
    """
    Running union of source ids for this round.

    A node is in the set when it originates this round or when any neighbor
    forwarded it last round. Removal is never signalled: an id simply stops
    being forwarded (see `forward_sources`).
    """
    collected: set[int] = set()
    for neighbor_set in ctx.neighbor_values(slot).values():
        collected |= neighbor_set
    if include_self:
        collected.add(ctx.node_id)
    return collected


def forward_sources(
    ctx: RoundContext,
    slot: str,
    collected: Iterable[int],
    live: Mapping[int, Any],
    include_self: bool,
) -> frozenset[int]:
    """
    Export the source ids worth forwarding next round.

    An id is forwarded only if this node originates it or still holds a live
    entry for it. Once every entry for a departed source has run out of
    radius, the id drops out of the union on its own.
    """
    forwarded = {
        sid for sid in collected if sid != ctx.node_id and sid in live
    }
    if include_self:
        forwarded.add(ctx.node_id)
    result = frozenset(forwarded)
    ctx.export(slot, result)
    return result


def radius_cutoff(local_id: int) -> Accumulator:
    """
    Accumulator enforcing a hard radius cutoff on GradientResult values.

    The neighbor's value passes unchanged while
    from_source + to_neighbor <= payload.remaining_budget, otherwise it
    collapses to the bottom value (local_id, +inf, "", -1).
    """

    def accumulate(
        from_source: float, to_neighbor: float, value: GradientResult
    ) -> GradientResult:
        if from_source + to_neighbor <= value.payload.remaining_budget:
            return value
        return GradientResult.bottom(local_id)

    return accumulate
