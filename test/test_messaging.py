import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from omniflow.errors import ProviderUnconfigured, ValidationError
from omniflow.messaging import (
    SimulatedTelegramMessenger,
    SimulatedWhatsAppMessenger,
    normalize_telegram_update,
    normalize_whatsapp_payload,
)


def whatsapp_body(*messages):
    return {
        "object": "whatsapp_business_account",
        "entry": [{
            "changes": [{
                "field": "messages",
                "value": {
                    "metadata": {"phone_number_id": "111", "display_phone_number": "+1 555"},
                    "contacts": [{"wa_id": "15550001"}],
                    "messages": list(messages),
                },
            }],
        }],
    }


class TestTelegramUpdates:

    def test_message(self):
        event = normalize_telegram_update({
            "update_id": 1,
            "message": {
                "message_id": 10,
                "date": 1700000000,
                "chat": {"id": -42, "type": "group", "title": "Traders"},
                "from": {"id": 7, "first_name": "Sam", "username": "sam"},
                "text": "/status",
            },
        })
        assert event.type == "message"
        assert event.chat_id == "-42"
        assert event.text == "/status"
        assert event.message_id == "10"
        assert event.sender["username"] == "sam"
        assert event.extra["edited"] is False

    def test_edited_message(self):
        event = normalize_telegram_update({"edited_message": {"message_id": 3, "chat": {"id": 1}, "text": "x"}})
        assert event.extra["edited"] is True

    def test_callback_query(self):
        event = normalize_telegram_update({
            "callback_query": {
                "id": "cb1",
                "from": {"id": 7},
                "data": "confirm",
                "message": {"chat": {"id": 5}},
            },
        })
        assert event.type == "callback_query"
        assert event.chat_id == "5"
        assert event.text == "confirm"

    def test_unknown_update_is_ignored(self):
        assert normalize_telegram_update({"poll": {}}) is None
        assert normalize_telegram_update(None) is None

    def test_malformed_parts_are_ignored(self):
        assert normalize_telegram_update({"message": "hello"}) is None
        assert normalize_telegram_update({"callback_query": ["x"]}) is None
        event = normalize_telegram_update({"message": {"message_id": 1, "chat": "oops", "from": 3, "text": "hi"}})
        assert event.chat_id is None
        assert event.sender is None
        assert event.text == "hi"


class TestWhatsAppPayloads:

    def test_text_message(self):
        events = normalize_whatsapp_payload(whatsapp_body(
            {"id": "wamid.A", "type": "text", "timestamp": "1700000000", "text": {"body": "hi"}},
        ))
        assert len(events) == 1
        event = events[0]
        assert event.text == "hi"
        assert event.chat_id == "15550001"
        assert event.extra["metadata"] == {"phoneNumberId": "111", "displayPhoneNumber": "+1 555"}

    def test_media_message(self):
        events = normalize_whatsapp_payload(whatsapp_body(
            {"id": "wamid.B", "type": "image", "image": {"id": "m1", "mime_type": "image/png", "caption": "c"}},
        ))
        assert events[0].text is None
        assert events[0].extra["content"]["mimeType"] == "image/png"

    def test_other_objects_are_ignored(self):
        assert normalize_whatsapp_payload({"object": "page"}) == []
        assert normalize_whatsapp_payload("nope") == []

    def test_malformed_entries_are_skipped(self):
        body = whatsapp_body({"id": "ok", "type": "text", "text": {"body": "fine"}}, "not-a-message")
        body["entry"].insert(0, "junk")
        body["entry"][1]["changes"].insert(0, 42)
        events = normalize_whatsapp_payload(body)
        assert [e.text for e in events] == ["fine"]
        assert normalize_whatsapp_payload({"object": "whatsapp_business_account", "entry": "nope"}) == []

    def test_messenger_survives_malformed_update(self):
        assert SimulatedWhatsAppMessenger().process_inbound_update(
            {"object": "whatsapp_business_account", "entry": [None]}) is None
        assert SimulatedTelegramMessenger().process_inbound_update({"message": "text"}) is None


class TestSimulatedMessengers:

    @pytest.mark.asyncio
    async def test_telegram_records_sends(self):
        messenger = SimulatedTelegramMessenger()
        first = await messenger.send_message("1", "a")
        second = await messenger.send_message("1", "b", {"parse_mode": "Markdown"})

        assert first.ok and second.ok
        assert [m["message_id"] for m in messenger.sent] == [1, 2]
        assert messenger.sent[1]["parse_mode"] == "Markdown"

    @pytest.mark.asyncio
    async def test_telegram_empty_target(self):
        result = await SimulatedTelegramMessenger().send_message("", "a")
        assert not result.ok
        assert "chat not found" in result.error_description

    @pytest.mark.asyncio
    async def test_unconfigured_messenger(self):
        messenger = SimulatedTelegramMessenger(bot_token=None)
        with pytest.raises(ProviderUnconfigured):
            await messenger.send_message("1", "a")

    @pytest.mark.asyncio
    async def test_webhooks(self):
        messenger = SimulatedWhatsAppMessenger()
        await messenger.register_webhook("https://example.org/hook")
        assert messenger.webhook_url == "https://example.org/hook"
        await messenger.remove_webhook()
        assert messenger.webhook_url is None
        assert messenger.webhook_history == ["https://example.org/hook", None]
        with pytest.raises(ValidationError):
            await messenger.register_webhook("")

    def test_whatsapp_verification(self):
        verify = SimulatedWhatsAppMessenger.verify_webhook
        assert verify("subscribe", "secret", "12345", "secret") == "12345"
        assert verify("subscribe", "wrong", "12345", "secret") is None

    def test_whatsapp_inbound_takes_first_message(self):
        messenger = SimulatedWhatsAppMessenger()
        event = messenger.process_inbound_update(whatsapp_body(
            {"id": "1", "type": "text", "text": {"body": "first"}},
            {"id": "2", "type": "text", "text": {"body": "second"}},
        ))
        assert event.text == "first"
