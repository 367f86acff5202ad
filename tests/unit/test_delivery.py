"""Unit tests for delivery analysis."""

import numpy as np
import pytest

from geocastsim.analysis.delivery import (
    DeliveryReport,
    compute_delivery_reports,
    summarize_delivery,
)
from geocastsim.core import (
    GeocastKernel,
    MessageKey,
    Network,
    NetworkConfig,
    RoundScheduler,
    SchedulerConfig,
    SourceRoleConfig,
)


def report(expected, delivered):
    return DeliveryReport(
        key=MessageKey(0, 1),
        radius=10.0,
        origin_position=np.zeros(3),
        expected=frozenset(expected),
        delivered=frozenset(delivered),
    )


class TestDeliveryReport:
    """Tests for per-emission ratios."""

    def test_full_delivery(self):
        assert report({1, 2}, {1, 2}).delivery_ratio == 1.0

    def test_partial_delivery(self):
        assert report({1, 2, 3, 4}, {1}).delivery_ratio == 0.25

    def test_nothing_expected(self):
        assert report(set(), set()).delivery_ratio == 1.0

    def test_violations(self):
        r = report({1, 2}, {2, 7})
        assert r.violations == frozenset({7})


class TestSummarize:
    """Tests for aggregate numbers."""

    def test_empty(self):
        summary = summarize_delivery([])
        assert summary["n_emissions"] == 0
        assert summary["mean_delivery_ratio"] == 1.0

    def test_aggregates(self):
        summary = summarize_delivery([report({1, 2}, {1, 2}), report({1, 2}, {1, 9})])

        assert summary["n_emissions"] == 2
        assert summary["mean_delivery_ratio"] == pytest.approx(0.75)
        assert summary["min_delivery_ratio"] == pytest.approx(0.5)
        assert summary["total_deliveries"] == 4
        assert summary["total_violations"] == 1


class TestComputeReports:
    """Delivery reports from real runs."""

    def test_single_source(self, make_scheduler, emitter_config):
        scheduler = make_scheduler(
            [(0, 0), (7, 0), (0, 9), (30, 0)],
            comm_range=20.0,
            emitters={0: emitter_config},
        )
        scheduler.run(4)

        (r,) = compute_delivery_reports(scheduler)

        assert r.key == MessageKey(0, 1)
        assert r.radius == 10.0
        assert r.expected == frozenset({1, 2})
        assert r.delivered == frozenset({1, 2})
        assert r.violations == frozenset()

    def test_no_delivery_outside_radius_on_random_network(self):
        network = Network(NetworkConfig(n_nodes=50, width=80.0, height=80.0, comm_range=16.0, seed=4))
        kernel = GeocastKernel(
            SourceRoleConfig(
                activation_probability=0.05,
                min_active_duration=6.0,
                cooldown_duration=6.0,
                radius_range=(10, 35),
            )
        )
        scheduler = RoundScheduler(network, kernel, SchedulerConfig(seed=1))
        scheduler.run(60)

        reports = compute_delivery_reports(scheduler)
        summary = summarize_delivery(reports)

        assert summary["n_emissions"] > 0
        assert summary["total_deliveries"] > 0
        assert summary["total_violations"] == 0
        for r in reports:
            assert r.key.sender_id not in r.delivered
