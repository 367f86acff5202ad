"""
Delivery analysis: how well did each emission cover its radius?

For every emission logged by the scheduler we compare:
- expected: nodes whose anchor lies within the radius of the origin position
  at emission time (origin excluded)
- delivered: nodes whose store holds the message key

Relay paths are never shorter than the straight line, so on a static network
every delivered node must lie within the radius. Anything outside it is a
violation. Expected-but-undelivered nodes are normal when the radius ball is
not connected through the communication graph, or when the episode ended
before the gradient reached them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from geocastsim.core.messages import MessageKey
from geocastsim.core.metric import euclidean_distances

if TYPE_CHECKING:
    from geocastsim.core.scheduler import RoundScheduler


@dataclass
class DeliveryReport:
    """Coverage of one emission."""

    key: MessageKey
    radius: float
    origin_position: np.ndarray
    expected: frozenset[int]
    delivered: frozenset[int]

    @property
    def delivery_ratio(self) -> float:
        """Fraction of expected nodes that registered the message (1.0 if none expected)."""
        if not self.expected:
            return 1.0
        return len(self.expected & self.delivered) / len(self.expected)

    @property
    def violations(self) -> frozenset[int]:
        """Delivered nodes lying outside the radius."""
        return self.delivered - self.expected


def compute_delivery_reports(
    scheduler: "RoundScheduler",
    tolerance: float = 1e-9,
) -> list[DeliveryReport]:
    """
    Build a DeliveryReport for every emission the scheduler recorded.

    Args:
        scheduler: A scheduler that has already run
        tolerance: Slack on the radius comparison for floating point noise

    Returns:
        Reports in emission order
    """
    anchors = scheduler.network.positions
    reports = []

    for emission in scheduler.emissions:
        key = emission.key
        radius = emission.payload.remaining_budget
        distances = euclidean_distances(emission.position, anchors)

        within = np.flatnonzero(distances <= radius + tolerance)
        expected = frozenset(int(i) for i in within if int(i) != key.sender_id)
        delivered = frozenset(
            nid for nid, state in scheduler.states.items() if key in state.store
        )

        reports.append(
            DeliveryReport(
                key=key,
                radius=radius,
                origin_position=emission.position,
                expected=expected,
                delivered=delivered,
            )
        )

    return reports


def summarize_delivery(reports: list[DeliveryReport]) -> dict:
    """Aggregate numbers over a list of reports."""
    if not reports:
        return {
            "n_emissions": 0,
            "mean_delivery_ratio": 1.0,
            "min_delivery_ratio": 1.0,
            "total_deliveries": 0,
            "total_violations": 0,
        }

    ratios = np.array([r.delivery_ratio for r in reports], dtype=np.float64)
    return {
        "n_emissions": len(reports),
        "mean_delivery_ratio": float(ratios.mean()),
        "min_delivery_ratio": float(ratios.min()),
        "total_deliveries": sum(len(r.delivered) for r in reports),
        "total_violations": sum(len(r.violations) for r in reports),
    }
