"""
Kernels define the local program every node runs once per round.

The geocast kernel's job, in order:
1. Let the role manager decide whether we are a source
2. Gradient-cast the intent to send, cut off at the source's radius
3. Build the sender table from our result and our neighbors' results
4. Announce sender radii and collect one-hop relay records
5. Re-broadcast this round's one-hop records to nodes several hops away
6. Register new messages in the store
7. Report a summary

PRIMITIVES vs DERIVED:
- Kernel inputs: RoundContext (own position, neighbor ranges, neighbor exports)
- Kernel outputs: mutated NodeState + exports for next round + a report
- Delivery ratios and radius checks are derived later in the analysis layer
"""

from __future__ import annotations

import math
from typing import Any, Literal, Mapping, Protocol

from geocastsim.core.context import RoundContext, map_neighborhood
from geocastsim.core.gradient import gradient_cast, radius_cutoff
from geocastsim.core.messages import GradientResult, SourcePayload
from geocastsim.core.relay import RelayTable, save_new_message, spread_new_message
from geocastsim.core.roles import SourceRoleConfig, SourceRoleManager
from geocastsim.core.state import NodeState

INTENT_SLOT = "intent"
SENDERS_SLOT = "senders"
ANNOUNCE_SLOT = "announce"

ReportMode = Literal["count", "senders"]


class Kernel(Protocol):
    """Protocol for per-node round programs."""

    def create_state(self, node_id: int) -> NodeState:
        """Fresh persistent state for a node joining the simulation."""
        ...

    def step(self, ctx: RoundContext, state: NodeState) -> Any:
        """
        Evaluate one round for one node.

        Args:
            ctx: The node's view of this round
            state: The node's persistent state (mutated in place)

        Returns:
            Whatever summary the caller wants reported for this node
        """
        ...


class GeocastKernel:
    """
    Geocast dissemination: sources spread a message to every node within
    their declared radius, every node registers each message once.

    Usage:
    - Default role config applies to every node
    - role_overrides pins specific nodes (e.g. a fixed emitter in a scenario)
    - report="count" returns the number of distinct messages received;
      report="senders" returns {origin: (radius, content)} for the senders
      whose messages are currently reaching the node
    """

    def __init__(
        self,
        role_config: SourceRoleConfig | None = None,
        role_overrides: Mapping[int, SourceRoleConfig] | None = None,
        report: ReportMode = "count",
    ):
        if report not in ("count", "senders"):
            raise ValueError(f"Unknown report mode: {report!r}")
        self.report = report
        self._default_roles = SourceRoleManager(role_config)
        self._role_overrides = {
            nid: SourceRoleManager(cfg) for nid, cfg in (role_overrides or {}).items()
        }

    def roles_for(self, node_id: int) -> SourceRoleManager:
        return self._role_overrides.get(node_id, self._default_roles)

    def create_state(self, node_id: int) -> NodeState:
        return NodeState(node_id=node_id)

    def step(self, ctx: RoundContext, state: NodeState) -> Any:
        # 1. Role
        payload = self.roles_for(ctx.node_id).step(state, ctx.time, ctx.rng, ctx.position)
        is_source = payload is not None

        # 2. Intent to send
        local = GradientResult(ctx.node_id, payload) if is_source else GradientResult.bottom(ctx.node_id)
        intent = gradient_cast(
            ctx,
            INTENT_SLOT,
            source=is_source,
            local=local,
            accumulate=radius_cutoff(ctx.node_id),
            is_bottom=lambda result: result.is_bottom,
        )

        # 3. Senders: ours first, then whatever neighbors discovered
        own: dict[int, SourcePayload] = {}
        if not intent.value.is_bottom:
            own[intent.value.source_id] = intent.value.payload
        ctx.export(SENDERS_SLOT, own)
        senders = merge_senders(own, ctx.neighbor_values(SENDERS_SLOT))

        # 4. One-hop reception
        announced = map_neighborhood(
            ctx,
            lambda nid: senders[nid].remaining_budget if nid in senders else math.inf,
        )
        ctx.export(ANNOUNCE_SLOT, announced)
        admissible = save_new_message(ctx, ctx.neighbor_values(ANNOUNCE_SLOT), senders)

        # 5. Multi-hop re-broadcast. Last round's working set is never reused;
        # it comes back only through neighbor exports, re-measured.
        incoming: RelayTable = {}
        for records in admissible.values():
            for record in records:
                incoming[record.to] = [record]
        relayed = spread_new_message(ctx, incoming, is_relay=bool(incoming))
        working = merge_relayed(incoming, relayed, ctx.node_id)
        state.relays = working

        # 6. Register
        state.store.absorb(
            (record.key, record.content, record.admissible)
            for records in working.values()
            for record in records
        )

        # 7. Report
        if self.report == "senders":
            return {
                origin: (payload.remaining_budget, payload.content)
                for origin, payload in senders.items()
                if origin in working
            }
        return len(state.store)


def merge_senders(
    own: Mapping[int, SourcePayload],
    neighbor_tables: Mapping[int, Mapping[int, SourcePayload]],
) -> dict[int, SourcePayload]:
    """Union of sender tables; the first entry for an origin wins (own first)."""
    merged = dict(own)
    for nid in sorted(neighbor_tables):
        for origin, payload in neighbor_tables[nid].items():
            if origin not in merged and not payload.is_sentinel:
                merged[origin] = payload
    return merged


def merge_relayed(
    incoming: RelayTable,
    relayed: Mapping[int, RelayTable],
    node_id: int,
) -> RelayTable:
    """
    Fold re-broadcast records into the working set.

    An origin already present is the same message and is skipped; our own
    messages never come back to us.
    """
    working = {origin: list(records) for origin, records in incoming.items()}
    for relay_id in sorted(relayed):
        for origin, records in relayed[relay_id].items():
            if origin == node_id or origin in working:
                continue
            working[origin] = list(records)
    return working
