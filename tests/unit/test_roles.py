"""Unit tests for the source role state machine."""

import numpy as np
import pytest

from geocastsim.core.roles import SourceRoleConfig, SourceRoleManager, default_message
from geocastsim.core.state import NodeState, RoleState


def always(min_active=2.0, cooldown=2.0, radius_range=(10, 10)):
    return SourceRoleConfig(
        activation_probability=1.0,
        min_active_duration=min_active,
        cooldown_duration=cooldown,
        radius_range=radius_range,
    )


def run_rounds(manager, state, rng, n, round_duration=1.0):
    """Step the manager n rounds; return the payload seen each round."""
    return [manager.step(state, i * round_duration, rng) for i in range(n)]


class TestSourceRoleConfig:
    """Tests for config defaults and validation."""

    def test_defaults(self):
        cfg = SourceRoleConfig()
        assert cfg.activation_probability == 0.25
        assert cfg.min_active_duration == 15.0
        assert cfg.cooldown_duration == 15.0
        assert cfg.radius_range == (5, 19)

    def test_simple_preset(self):
        cfg = SourceRoleConfig.simple()
        assert cfg.min_active_duration == 0.0
        assert cfg.cooldown_duration == 0.0

    @pytest.mark.parametrize("p", [-0.1, 1.5])
    def test_rejects_bad_probability(self, p):
        with pytest.raises(ValueError):
            SourceRoleConfig(activation_probability=p)

    def test_rejects_negative_durations(self):
        with pytest.raises(ValueError):
            SourceRoleConfig(min_active_duration=-1.0)
        with pytest.raises(ValueError):
            SourceRoleConfig(cooldown_duration=-1.0)

    def test_rejects_inverted_radius_range(self):
        with pytest.raises(ValueError):
            SourceRoleConfig(radius_range=(10, 5))

    def test_default_message(self):
        assert default_message(4, 1) == "Hello! I'm device 4"


class TestTransitions:
    """Tests for Idle -> Active -> Cooldown -> Idle."""

    def test_silent_never_activates(self, rng):
        manager = SourceRoleManager(SourceRoleConfig.silent())
        state = NodeState(node_id=0)

        payloads = run_rounds(manager, state, rng, 50)

        assert all(p is None for p in payloads)
        assert state.emission_counter == 0
        assert state.role is RoleState.IDLE

    def test_activation_freezes_a_payload(self, rng):
        manager = SourceRoleManager(always())
        state = NodeState(node_id=3)

        payload = manager.step(state, 0.0, rng)

        assert state.role is RoleState.ACTIVE
        assert state.is_source
        assert state.source_since == 0.0
        assert payload.origin_id == 3
        assert payload.remaining_budget == 10.0
        assert payload.emission_counter == 1
        assert payload.content == "Hello! I'm device 3"

    def test_activation_freezes_origin_position(self, rng):
        manager = SourceRoleManager(always(min_active=3.0))
        state = NodeState(node_id=0)

        first = manager.step(state, 0.0, rng, position=(1.0, 2.0))
        later = manager.step(state, 1.0, rng, position=(9.0, 9.0, 9.0))

        assert first.origin_position == (1.0, 2.0, 0.0)
        assert later.origin_position == (1.0, 2.0, 0.0)

    def test_no_position_no_origin(self, rng):
        payload = SourceRoleManager(always()).step(NodeState(node_id=0), 0.0, rng)
        assert payload.origin_position is None

    def test_payload_constant_while_active(self, rng):
        manager = SourceRoleManager(always(min_active=3.0))
        state = NodeState(node_id=0)

        payloads = run_rounds(manager, state, rng, 3)

        assert payloads[0] is not None
        assert payloads[1] == payloads[0]
        assert payloads[2] == payloads[0]

    def test_full_cycle_timing(self, rng):
        manager = SourceRoleManager(always(min_active=2.0, cooldown=2.0))
        state = NodeState(node_id=0)

        payloads = run_rounds(manager, state, rng, 7)
        emissions = [p.emission_counter if p else None for p in payloads]

        # t0 active, t2 cooldown, t4 idle (no draw), t5 active again
        assert emissions == [1, 1, None, None, None, 2, 2]

    def test_no_draw_on_the_round_cooldown_ends(self, rng):
        manager = SourceRoleManager(always(min_active=1.0, cooldown=1.0))
        state = NodeState(node_id=0)

        manager.step(state, 0.0, rng)  # active
        manager.step(state, 1.0, rng)  # cooldown
        manager.step(state, 2.0, rng)  # idle, no draw

        assert state.role is RoleState.IDLE
        assert state.last_attempt == 0.0

    def test_last_attempt_tracks_draws(self, rng):
        manager = SourceRoleManager(SourceRoleConfig.silent())
        state = NodeState(node_id=0)

        run_rounds(manager, state, rng, 4)

        assert state.last_attempt == 3.0

    def test_deactivation_clears_message(self, rng):
        manager = SourceRoleManager(always(min_active=1.0, cooldown=5.0))
        state = NodeState(node_id=0)

        manager.step(state, 0.0, rng)
        manager.step(state, 1.0, rng)

        assert state.role is RoleState.COOLDOWN
        assert not state.is_source
        assert state.current_message is None
        assert state.last_role_flip == 1.0


class TestEmissionInvariants:
    """Emission ids and radii across many episodes."""

    def test_emission_counter_strictly_increases(self):
        rng = np.random.default_rng(7)
        manager = SourceRoleManager(
            SourceRoleConfig(
                activation_probability=0.3,
                min_active_duration=2.0,
                cooldown_duration=1.0,
            )
        )
        state = NodeState(node_id=0)

        seen = []
        for i in range(300):
            payload = manager.step(state, float(i), rng)
            if payload is not None and (not seen or seen[-1] != payload.emission_counter):
                seen.append(payload.emission_counter)

        assert len(seen) > 5
        assert seen == list(range(1, len(seen) + 1))

    def test_radius_drawn_within_inclusive_bounds(self):
        rng = np.random.default_rng(11)
        manager = SourceRoleManager(
            SourceRoleConfig(
                activation_probability=1.0,
                min_active_duration=0.0,
                cooldown_duration=0.0,
                radius_range=(5, 7),
            )
        )
        state = NodeState(node_id=0)

        radii = set()
        for i in range(300):
            payload = manager.step(state, float(i), rng)
            if payload is not None:
                radii.add(payload.remaining_budget)

        assert radii == {5.0, 6.0, 7.0}

    def test_simple_preset_reactivates_quickly(self):
        rng = np.random.default_rng(3)
        manager = SourceRoleManager(SourceRoleConfig.simple())
        state = NodeState(node_id=0)

        for i in range(200):
            manager.step(state, float(i), rng)

        assert state.emission_counter > 10
