"""
Pytest configuration and shared fixtures.
"""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(seed=42)


@pytest.fixture
def emitter_config():
    """A node that becomes a source on its first round and stays one for a long time."""
    from geocastsim.core import SourceRoleConfig
    return SourceRoleConfig(
        activation_probability=1.0,
        min_active_duration=1000.0,
        cooldown_duration=1000.0,
        radius_range=(10, 10),
        message_factory=lambda node_id, emission: "hi",
    )


@pytest.fixture
def silent_config():
    """A node that never becomes a source."""
    from geocastsim.core import SourceRoleConfig
    return SourceRoleConfig.silent()


@pytest.fixture
def make_scheduler(silent_config):
    """
    Build a scheduler over explicit positions.

    Every node is silent unless listed in `emitters` (node id -> role config).
    """
    from geocastsim.core import GeocastKernel, Network, RoundScheduler, SchedulerConfig

    def _make(positions, comm_range, emitters=None, report="count", seed=0):
        network = Network.from_positions(positions, comm_range=comm_range)
        kernel = GeocastKernel(
            role_config=silent_config,
            role_overrides=emitters or {},
            report=report,
        )
        return RoundScheduler(network, kernel, SchedulerConfig(seed=seed))

    return _make
