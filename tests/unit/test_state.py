"""Unit tests for NodeState."""

import math

import pytest

from geocastsim.core.messages import MessageKey, SourcePayload
from geocastsim.core.state import NodeState, RoleState
from geocastsim.core.store import MessageStore


class TestNodeState:
    """Tests for per-node state."""

    def test_fresh_state(self):
        state = NodeState(node_id=2)
        assert state.role is RoleState.IDLE
        assert not state.is_source
        assert state.emission_counter == 0
        assert state.store.owner_id == 2
        assert state.payload == SourcePayload.sentinel(2)

    def test_store_is_always_built(self):
        assert isinstance(NodeState(node_id=3).store, MessageStore)
        with pytest.raises(TypeError):
            NodeState(node_id=3, store=None)

    def test_stores_are_not_shared(self):
        a, b = NodeState(node_id=0), NodeState(node_id=1)
        a.store.absorb([(MessageKey(5, 1), "x", True)])
        assert len(b.store) == 0
        assert a.relays is not b.relays

    def test_snapshot_defaults(self):
        snap = NodeState(node_id=0).snapshot()
        assert snap == {
            "isSource": False,
            "sourceSince": 0.0,
            "emissionCounter": 0,
            "message": "",
            "distance": math.inf,
            "messagesReceived": 0,
            "messageHistory": [],
            "lastAttempt": 0.0,
        }

    def test_snapshot_while_emitting(self):
        state = NodeState(node_id=0)
        state.is_source = True
        state.source_since = 3.0
        state.emission_counter = 2
        state.current_message = SourcePayload(0, 12.0, "hello", 2)
        state.store.absorb([(MessageKey(4, 1), "from four", True)])

        snap = state.snapshot()

        assert snap["isSource"]
        assert snap["sourceSince"] == 3.0
        assert snap["message"] == "hello"
        assert snap["distance"] == 12.0
        assert snap["messageHistory"] == [(4, 1, "from four")]
