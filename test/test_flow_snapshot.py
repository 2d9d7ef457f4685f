import json
import os
import random
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from omniflow.config import fast_config
from omniflow.errors import ValidationError
from omniflow.flow import build_runtime, dump_snapshot, dumps_snapshot, load_snapshot
from omniflow.graph import GraphStore
from omniflow.models.factory.Nodes import ExecutionStatus, NodeKind
from omniflow.models.model_run_context import RunContext
from omniflow.util.graph_validator import validate_graph

SNAPSHOT = {
    "nodes": [
        {
            "id": "in", "type": "input", "name": "Text Input",
            "inputs": [{"key": "placeholder", "type": "string", "value": "42"}],
            "outputs": [{"key": "value", "label": "Value", "type": "string"}],
            "position": {"x": 10, "y": 20},
            "selected": True,
        },
        {
            "id": "cond", "kind": "branch", "name": "If Condition",
            "inputs": [
                {"key": "value", "type": "any"},
                {"key": "condition", "type": "string", "value": "value>=10"},
            ],
            "outputs": [{"key": "true"}, {"key": "false"}],
        },
        {
            "id": "out", "kind": "sink", "name": "Text Output",
            "inputs": [{"key": "text", "type": "string"}],
            "outputs": [],
        },
    ],
    "edges": [
        {"id": "e1", "source": "in", "sourceHandle": "value", "target": "cond", "targetHandle": "value"},
        {"id": "e2", "source": "cond", "sourceHandle": "true", "target": "out", "targetHandle": "text"},
    ],
}


class TestSnapshot:
    """Loading, defaults, legacy shapes and round trips."""

    def test_defaults_and_legacy_kind(self):
        store = load_snapshot(SNAPSHOT)
        node = store.get_node("in")
        assert node.kind is NodeKind.SOURCE
        assert node.is_active is True
        assert node.is_playing is False
        assert node.console_output == []

    def test_content_wrapper(self):
        store = load_snapshot({"content": SNAPSHOT, "name": "wrapped"})
        assert len(store) == 3

    def test_json_text(self):
        store = load_snapshot(json.dumps(SNAPSHOT))
        assert [e.id for e in store.edges] == ["e1", "e2"]

    def test_round_trip_keeps_ids_and_values(self):
        dumped = dump_snapshot(load_snapshot(SNAPSHOT))
        again = dump_snapshot(load_snapshot(dumped))

        assert [n["id"] for n in again["nodes"]] == ["in", "cond", "out"]
        assert [e["id"] for e in again["edges"]] == ["e1", "e2"]
        assert again["nodes"][0]["inputs"][0]["value"] == "42"
        assert again["nodes"][0]["isActive"] is True
        assert again["nodes"][0]["selected"] is True
        assert again["edges"][0]["sourceHandle"] == "value"
        assert json.loads(dumps_snapshot(load_snapshot(dumped))) == again

    def test_missing_positions_are_laid_out(self):
        store = load_snapshot(SNAPSHOT)
        assert store.get_node("in").position == {"x": 10, "y": 20}
        assert store.get_node("cond").position == {"x": 0, "y": 100}
        assert store.get_node("out").position == {"x": 0, "y": 200}

    def test_layout_can_be_disabled(self):
        store = load_snapshot(SNAPSHOT, layout=False)
        assert store.get_node("cond").position is None


class TestGraphValidator:

    def findings(self, store):
        return {(f["type"], f["severity"]) for f in validate_graph(store)}

    def test_clean_graph(self):
        assert validate_graph(load_snapshot(SNAPSHOT)) == []

    def test_reports_problems(self):
        store = load_snapshot(SNAPSHOT)
        store.add_edge({"id": "dangling", "source": "in", "sourceHandle": "value",
                        "target": "ghost", "targetHandle": "text"})
        store.add_edge({"id": "bad-handle", "source": "in", "sourceHandle": "nope",
                        "target": "out", "targetHandle": "text"})
        store.add_edge({"id": "dup", "source": "in", "sourceHandle": "value",
                        "target": "cond", "targetHandle": "value"})
        store.add_node({"id": "odd", "kind": "act", "name": "Teleporter"})

        found = self.findings(store)
        assert ("DanglingEdge", "error") in found
        assert ("UnknownHandle", "error") in found
        assert ("DuplicateEdge", "warning") in found
        assert ("SharedInputSlot", "warning") in found
        assert ("UnsupportedNode", "error") in found

    def test_cycle_is_a_warning(self):
        store = load_snapshot(SNAPSHOT)
        store.add_edge({"id": "back", "source": "cond", "sourceHandle": "false",
                        "target": "cond", "targetHandle": "value"})
        cycles = [f for f in validate_graph(store) if f["type"] == "Cycle"]
        assert len(cycles) == 1
        assert cycles[0]["severity"] == "warning"
        assert cycles[0]["node_ids"] == ["cond"]

    def test_switch_default_handle_is_known(self):
        store = GraphStore(nodes=[
            {"id": "sw", "kind": "branch", "name": "Switch Case",
             "inputs": [{"key": "value"}], "outputs": [{"key": "a"}]},
            {"id": "out", "kind": "sink", "name": "Text Output", "inputs": [{"key": "text"}]},
        ], edges=[{"id": "e", "source": "sw", "sourceHandle": "default", "target": "out", "targetHandle": "text"}])
        assert validate_graph(store) == []


class TestFlowRuntime:
    """Runtime wiring: play button, edits and scheduling."""

    def setup_method(self):
        context = RunContext(config=fast_config(), rng=random.Random(1))
        self.runtime = build_runtime(SNAPSHOT, context=context)

    @pytest.mark.asyncio
    async def test_play_runs_cascade(self):
        report = await self.runtime.play("in")

        assert report.executed == ["in", "cond", "out"]
        assert self.runtime.store.get_node("cond").output_data["true"] is True
        assert self.runtime.store.get_node("out").output_data["displayText"] is True

    @pytest.mark.asyncio
    async def test_pause_does_not_run(self):
        await self.runtime.play("in")
        assert await self.runtime.play("in") is None
        assert self.runtime.store.get_node("in").is_playing is False

    @pytest.mark.asyncio
    async def test_edit_on_playing_node_reruns(self):
        await self.runtime.play("in")
        report = await self.runtime.edit_input("in", "placeholder", "3")

        assert report is not None
        assert self.runtime.store.get_node("cond").output_data["true"] is False

    @pytest.mark.asyncio
    async def test_edit_on_paused_node_only_stores(self):
        assert await self.runtime.edit_input("in", "placeholder", "3") is None
        assert self.runtime.store.get_node("in").execution_status is ExecutionStatus.NONE

    @pytest.mark.asyncio
    async def test_edit_unknown_slot(self):
        with pytest.raises(ValidationError):
            await self.runtime.edit_input("in", "nope", 1)

    def test_build_runtime_from_store(self):
        store = load_snapshot(SNAPSHOT)
        runtime = build_runtime(store, config=fast_config())
        assert runtime.store is store
        assert runtime.config.tick_interval == fast_config().tick_interval
