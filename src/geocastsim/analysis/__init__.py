"""
Analysis layer: derived quantities computed after a run.

IMPORTANT: This is NOT seen by the protocol. One-way derivation only.

- DeliveryReport: expected vs delivered nodes for one emission
- compute_delivery_reports: one report per emission logged by the scheduler
- summarize_delivery: aggregate delivery ratio and radius violations
"""

from geocastsim.analysis.delivery import (
    DeliveryReport,
    compute_delivery_reports,
    summarize_delivery,
)

__all__ = [
    "DeliveryReport",
    "compute_delivery_reports",
    "summarize_delivery",
]
