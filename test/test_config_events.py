import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from omniflow.config import EngineConfig, configure_logging, get_preset
from omniflow.events import CallbackEmitter, EmitterRegistry, FlowEventType, LogEmitter, QueueEmitter
from omniflow.events.events import console_append, currently_executing_changed, execution_status_changed
from omniflow.util.telemetry import _redact
from omniflow.util.transforms import apply_transformation, filter_by_key, flatten


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.tick_interval == 3.0
        assert config.cascade_on_tick is False
        assert config.max_cascade_steps == 1000

    def test_presets(self):
        fast = get_preset("fast")
        assert fast.delay_scale == 0.0
        assert fast.pacing_delay == 0.0
        with pytest.raises(ValueError):
            get_preset("warp")

    def test_from_dict_with_preset(self):
        config = EngineConfig.from_dict({"preset": "fast", "max_cascade_steps": 5, "unknown": 1})
        assert config.delay_scale == 0.0
        assert config.max_cascade_steps == 5

    def test_from_env(self):
        config = EngineConfig.from_env({
            "OMNIFLOW_TICK_INTERVAL": "1.5",
            "OMNIFLOW_CASCADE_ON_TICK": "true",
            "OMNIFLOW_MAX_CASCADE_STEPS": "7",
        })
        assert config.tick_interval == 1.5
        assert config.cascade_on_tick is True
        assert config.max_cascade_steps == 7

    def test_scaled(self):
        assert EngineConfig(delay_scale=0.5).scaled(2.0) == 1.0
        assert EngineConfig(delay_scale=0).scaled(2.0) == 0.0

    def test_configure_logging(self):
        configure_logging(EngineConfig(log_level="debug"))
        assert logging.getLogger("omniflow").level == logging.DEBUG
        configure_logging(EngineConfig())


class TestEmitters:

    @pytest.mark.asyncio
    async def test_callback_mapping(self):
        seen = []

        async def on_console(node_id, line):
            seen.append(("console", node_id, line))

        registry = EmitterRegistry([CallbackEmitter(
            on_execution_status_changed=lambda node_id, status: seen.append(("status", node_id, status)),
            on_currently_executing_changed=lambda node_id: seen.append(("current", node_id)),
            on_console_append=on_console,
        )])
        await registry.emit(execution_status_changed("a", "success"))
        await registry.emit(currently_executing_changed(None))
        await registry.emit(console_append("a", "hello"))

        assert seen == [("status", "a", "success"), ("current", None), ("console", "a", "hello")]

    @pytest.mark.asyncio
    async def test_failing_emitter_is_isolated(self):
        class Broken:
            name = "broken"

            async def emit(self, event):
                raise RuntimeError("nope")

        queue = asyncio.Queue()
        registry = EmitterRegistry([Broken(), QueueEmitter(queue)])
        await registry.emit(console_append("a", "line"))

        item = queue.get_nowait()
        assert item["type"] == FlowEventType.CONSOLE_APPEND.value
        assert item["content"]["payload"] == {"line": "line"}

    @pytest.mark.asyncio
    async def test_log_emitter(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="omniflow.events"):
            await LogEmitter().emit(execution_status_changed("a", "error"))
        assert "node=a" in caplog.text
        assert "status=error" in caplog.text


class TestTelemetryRedaction:

    def test_sensitive_keys_hidden(self):
        redacted = _redact({"botToken": "123", "nested": [{"privateKey": "k", "ok": 1}]})
        assert redacted == {"botToken": "***", "nested": [{"privateKey": "***", "ok": 1}]}


class TestTransforms:

    def test_flatten(self):
        assert flatten({"a": {"b": 1, "c": [1]}, "d": 2}) == {"a.b": 1, "a.c": [1], "d": 2}

    def test_filter_by_key(self):
        data = {"id": 1, "inner": {"id": 2, "x": 3}, "other": {"x": 4}}
        assert filter_by_key(data, "id") == {"id": 1, "inner": {"id": 2}}
        assert filter_by_key([{"id": 1}, {"x": 2}], "id") == [{"id": 1}]

    def test_default_adds_metadata(self):
        result = apply_transformation("default", [1, 2], "T")
        assert result == {
            "values": [1, 2],
            "metadata": {"type": "array", "length": 2, "transformed": True, "timestamp": "T"},
        }
        assert apply_transformation("lowercase", ["A", {"k": "B"}], "T") == ["a", {"k": "b"}]
