import os
import random
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from omniflow.config import fast_config
from omniflow.errors import UnsupportedNodeError
from omniflow.messaging import SimulatedTelegramMessenger
from omniflow.models.factory.Nodes import BaseNodeModel, NodeKind
from omniflow.models.model_run_context import RunContext
from omniflow.node_system import HANDLER_REGISTRY, available_handlers, execute_handler, is_supported
from omniflow.node_system.NodeMessaging import compose_bot_message, parse_bot_command

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


def configured_node(kind, name, **values):
    return BaseNodeModel(
        id="n1", kind=kind, name=name,
        inputs=[{"key": key, "value": value} for key, value in values.items()],
    )


class TestRegistry:
    """Two-level (kind, name) dispatch."""

    def test_all_handlers_registered(self):
        assert len(HANDLER_REGISTRY) == 19
        assert "branch/If Condition" in available_handlers()

    def test_is_supported(self):
        assert is_supported(NodeKind.SOURCE, "Text Input")
        assert is_supported("sink", "Chart Output")
        assert not is_supported(NodeKind.SOURCE, "Text Output")
        assert not is_supported("unknown-kind", "Text Input")

    @pytest.mark.asyncio
    async def test_unknown_pair_raises(self):
        with pytest.raises(UnsupportedNodeError):
            await execute_handler(NodeKind.ACT, "Teleporter", {})


class BaseHandlerTest:
    def setup_method(self):
        self.context = RunContext(config=fast_config(), rng=random.Random(42), clock=lambda: FIXED_NOW)

    async def run(self, kind, name, inputs=None, node=None):
        return await execute_handler(kind, name, inputs or {}, self.context, node=node)


class TestSourceAndSinkHandlers(BaseHandlerTest):

    @pytest.mark.asyncio
    async def test_text_input_defaults(self):
        result = await self.run(NodeKind.SOURCE, "Text Input")
        assert result.output_data == {"value": "Sample text"}

    @pytest.mark.asyncio
    async def test_file_upload(self):
        node = configured_node(NodeKind.SOURCE, "File Upload", fileName="data.csv")
        result = await self.run(NodeKind.SOURCE, "File Upload", node=node)
        assert result.output_data["value"]["name"] == "data.csv"
        assert result.output_data["value"]["size"] == 1024

    @pytest.mark.asyncio
    async def test_webhook_trigger_uses_context(self):
        result = await self.run(NodeKind.SOURCE, "Webhook Trigger")
        payload = result.output_data["payload"]
        assert payload["timestamp"] == FIXED_NOW.isoformat()
        assert payload["data"]["event"] == "user.created"
        assert 0 <= payload["data"]["id"] < 1000

    @pytest.mark.asyncio
    async def test_text_output_markdown(self):
        node = configured_node(NodeKind.SINK, "Text Output", format="Markdown")
        result = await self.run(NodeKind.SINK, "Text Output", {"text": "hello"}, node=node)
        assert result.output_data["displayText"] == "hello"
        assert "hello" in result.output_data["formattedText"]

    @pytest.mark.asyncio
    async def test_chart_output(self):
        result = await self.run(NodeKind.SINK, "Chart Output", {"data": [1, 2, 3]})
        assert result.output_data["chartData"] == [1, 2, 3]
        assert result.output_data["visualization"]["type"] == "Bar"


class TestTransformHandlers(BaseHandlerTest):

    @pytest.mark.asyncio
    async def test_text_processor_simulates_without_keys(self):
        node = configured_node(NodeKind.TRANSFORM, "Text Processor", model="gpt-4")
        result = await self.run(NodeKind.TRANSFORM, "Text Processor", {"text": "How do I start?"}, node=node)

        output = result.output_data
        assert output["isSimulation"] is True
        assert output["result"].startswith("GPT-4 response")
        usage = output["tokenUsage"]
        assert usage["total_tokens"] == usage["prompt_tokens"] + usage["completion_tokens"]
        assert any("simulation mode" in line for line in result.log_lines)

    @pytest.mark.asyncio
    async def test_data_transformer_object(self):
        result = await self.run(NodeKind.TRANSFORM, "Data Transformer", {"data": {"a": 1}})
        assert result.output_data["result"] == {"a": 1, "processed": True, "timestamp": FIXED_NOW.isoformat()}

    @pytest.mark.asyncio
    async def test_data_transformer_map(self):
        node = configured_node(NodeKind.TRANSFORM, "Data Transformer", transformation="map")
        result = await self.run(NodeKind.TRANSFORM, "Data Transformer", {"data": [{"a": 1}, 2]}, node=node)
        assert result.output_data["result"] == [{"a": 1, "processed": True}, 2]

    @pytest.mark.asyncio
    async def test_wallet_not_connected(self):
        result = await self.run(NodeKind.TRANSFORM, "Crypto Wallet")
        assert result.output_data == {"connected": False, "walletInfo": None, "balance": 0}

    @pytest.mark.asyncio
    async def test_wallet_with_address(self):
        node = configured_node(NodeKind.TRANSFORM, "Crypto Wallet", walletAddress="0xabc", network="Polygon")
        result = await self.run(NodeKind.TRANSFORM, "Crypto Wallet", node=node)
        info = result.output_data["walletInfo"]
        assert info["address"] == "0xabc"
        assert info["currency"] == "MATIC"

    @pytest.mark.asyncio
    async def test_trading_bot_needs_wallet(self):
        result = await self.run(NodeKind.TRANSFORM, "Trading Bot")
        assert result.output_data["recommendation"]["action"] == "none"

    @pytest.mark.asyncio
    async def test_trading_bot_recommends_configured_token(self):
        node = configured_node(NodeKind.TRANSFORM, "Trading Bot", tokens="SOL", strategy="Balanced")
        wallet = {"walletInfo": {"address": "0xabc", "network": "Ethereum"}}
        result = await self.run(NodeKind.TRANSFORM, "Trading Bot", {"walletInfo": wallet}, node=node)
        rec = result.output_data["recommendation"]
        assert rec["token"] == "SOL"
        assert rec["action"] in ("buy", "sell", "hold")
        assert result.output_data["walletInfo"] == {"address": "0xabc", "network": "Ethereum"}


class TestActHandlers(BaseHandlerTest):

    @pytest.mark.asyncio
    async def test_api_call_echo(self):
        node = configured_node(NodeKind.ACT, "API Call", url="https://api.example.com/users", method="post")
        result = await self.run(NodeKind.ACT, "API Call", {"body": {"x": 1}}, node=node)
        response = result.output_data["response"]
        assert result.output_data["status"] == 200
        assert response["data"]["method"] == "POST"
        assert response["data"]["receivedBody"] == {"x": 1}

    @pytest.mark.asyncio
    async def test_api_call_error_url(self):
        node = configured_node(NodeKind.ACT, "API Call", url="https://error.test")
        result = await self.run(NodeKind.ACT, "API Call", node=node)
        assert result.output_data["status"] == 500

    @pytest.mark.asyncio
    async def test_ai_processor_simulation(self):
        result = await self.run(NodeKind.ACT, "AI Processor", {"prompt": "Is it raining?"})
        assert result.output_data["status"] == 200
        assert result.output_data["response"].startswith("Gemini Pro analysis")

    @pytest.mark.asyncio
    async def test_data_transformation_uppercase(self):
        node = configured_node(NodeKind.ACT, "Data Transformation", type="uppercase")
        result = await self.run(NodeKind.ACT, "Data Transformation", {"data": {"a": "x"}}, node=node)
        assert result.output_data == {"result": {"a": "X"}, "status": 200}

    @pytest.mark.asyncio
    async def test_crypto_trade_without_wallet_fails(self):
        result = await self.run(NodeKind.ACT, "Crypto Trade")
        assert result.output_data["status"] == "failed"

    @pytest.mark.asyncio
    async def test_crypto_trade_follows_recommendation(self):
        inputs = {
            "walletInfo": {"address": "0xabc", "network": "Ethereum"},
            "recommendation": {"action": "sell", "token": "BTC", "amount": "2"},
        }
        result = await self.run(NodeKind.ACT, "Crypto Trade", inputs)
        details = result.output_data["details"]
        assert result.output_data["status"] == "completed"
        assert (details["action"], details["token"], details["amount"]) == ("Sell", "BTC", 2.0)
        assert result.output_data["transactionId"].startswith("0x")

    @pytest.mark.asyncio
    async def test_telegram_bot_unconfigured(self):
        result = await self.run(NodeKind.ACT, "Telegram Bot", {"recommendation": {"action": "buy"}})
        assert result.output_data["connected"] is False
        assert result.output_data["messagesSent"] == 0
        assert result.output_data["recommendation"] == {"action": "buy"}

    @pytest.mark.asyncio
    async def test_telegram_bot_sends_and_counts(self):
        messenger = SimulatedTelegramMessenger()
        self.context.messengers["telegram"] = messenger
        node = configured_node(NodeKind.ACT, "Telegram Bot", botToken="t", chatId="99")
        node.output_data = {"messagesSent": 2}

        result = await self.run(NodeKind.ACT, "Telegram Bot", {"message": "hi"}, node=node)
        assert result.output_data["messagesSent"] == 3
        assert messenger.sent[0]["chat"]["id"] == "99"
        assert messenger.sent[0]["text"] == "hi"


class TestBranchHandlers(BaseHandlerTest):

    @pytest.mark.asyncio
    async def test_if_condition(self):
        node = configured_node(NodeKind.BRANCH, "If Condition", condition="value>=10")
        result = await self.run(NodeKind.BRANCH, "If Condition", {"value": 12}, node=node)
        assert result.output_data["true"] is True
        assert result.output_data["false"] is False

    @pytest.mark.asyncio
    async def test_if_condition_is_idempotent(self):
        node = configured_node(NodeKind.BRANCH, "If Condition", condition='value=="A"')
        first = await self.run(NodeKind.BRANCH, "If Condition", {"value": "banana"}, node=node)
        second = await self.run(NodeKind.BRANCH, "If Condition", {"value": "banana"}, node=node)
        assert first.output_data == second.output_data
        assert first.output_data["true"] is False

    @pytest.mark.asyncio
    async def test_switch_case(self):
        node = configured_node(NodeKind.BRANCH, "Switch Case", cases='{"low": 1, "high": "9"}')
        result = await self.run(NodeKind.BRANCH, "Switch Case", {"value": 9}, node=node)
        assert result.output_data["high"] is True
        assert result.output_data["low"] is False
        assert result.output_data["default"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cases", ["{nope", "[1, 2]", "abc", 7])
    async def test_switch_case_malformed_cases_route_to_default(self, cases):
        node = configured_node(NodeKind.BRANCH, "Switch Case", cases=cases)
        result = await self.run(NodeKind.BRANCH, "Switch Case", {"value": 1}, node=node)
        assert result.output_data["default"] is True
        assert result.output_data["_debug"]["cases"] == {}
        assert result.output_data["_debug"]["matched"] is False


class TestMessagingHandlers(BaseHandlerTest):

    @pytest.mark.asyncio
    async def test_telegram_input_normalizes_update(self):
        node = configured_node(NodeKind.SOURCE, "Telegram Input", botToken="t", chatId="1", update={
            "message": {"message_id": 5, "chat": {"id": 1}, "text": "/buy ETH", "from": {"id": 8}},
        })
        result = await self.run(NodeKind.SOURCE, "Telegram Input", node=node)
        assert result.output_data["receivedMessage"]["text"] == "/buy ETH"
        assert result.output_data["command"] == {"action": "buy", "token": "ETH", "amount": 0.1}

    @pytest.mark.asyncio
    async def test_whatsapp_output_delivers(self):
        node = configured_node(NodeKind.SINK, "WhatsApp Output", recipient="15550001")
        result = await self.run(NodeKind.SINK, "WhatsApp Output", {"message": "hello"}, node=node)
        assert result.output_data["delivered"] is True
        assert result.output_data["messageId"] == "wamid.1"

    def test_parse_bot_command(self):
        assert parse_bot_command("/price SOL") == {"action": "getPrice", "token": "SOL"}
        assert parse_bot_command("show my balance") == {"action": "getBalance"}
        assert parse_bot_command("hello") is None
        assert parse_bot_command("") is None

    def test_compose_prefers_trade_details(self):
        text = compose_bot_message(
            "Update",
            wallet={"address": "0x1234567890abcdef", "network": "Ethereum"},
            recommendation={"action": "buy", "token": "ETH"},
            trade={"action": "Buy", "token": "ETH", "amount": 1, "price": "1800.00", "total": 1800.0},
        )
        assert "ETH" in text
        assert text != "Update"
