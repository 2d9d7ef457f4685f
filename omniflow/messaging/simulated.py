import itertools
import logging
from typing import Any, Optional

from omniflow.errors import ProviderUnconfigured, ValidationError
from omniflow.messaging.base import InboundEvent, Messenger, SendResult
from omniflow.messaging.updates import normalize_telegram_update, normalize_whatsapp_payload

logger = logging.getLogger(__name__)


class _RecordingMessenger(Messenger):
    """In-process transport that records every send and webhook change."""

    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self.webhook_url: Optional[str] = None
        self.webhook_history: list[Optional[str]] = []
        self._ids = itertools.count(1)

    def _require_configured(self):
        if not self.is_configured():
            raise ProviderUnconfigured(f"{self.name} messenger is not configured", provider=self.name)

    async def register_webhook(self, url: str) -> SendResult:
        self._require_configured()
        if not url:
            raise ValidationError("Webhook URL is not provided.", key='url')
        self.webhook_url = url
        self.webhook_history.append(url)
        logger.info("%s webhook set to %s", self.name, url)
        return SendResult(ok=True, result=True)

    async def remove_webhook(self) -> SendResult:
        self._require_configured()
        self.webhook_url = None
        self.webhook_history.append(None)
        logger.info("%s webhook removed", self.name)
        return SendResult(ok=True, result=True)


class SimulatedTelegramMessenger(_RecordingMessenger):
    name = 'telegram'

    def __init__(self, bot_token: Optional[str] = 'simulated-token'):
        super().__init__()
        self.bot_token = bot_token

    def is_configured(self) -> bool:
        return bool(self.bot_token)

    async def send_message(self, target: str, text: str, options: Optional[dict] = None) -> SendResult:
        self._require_configured()
        if not target:
            return SendResult(ok=False, error_description="Bad Request: chat not found")
        message_id = next(self._ids)
        record = {
            'message_id': message_id,
            'chat': {'id': target},
            'text': text,
            **(options or {}),
        }
        self.sent.append(record)
        logger.debug("telegram message %s sent to %s", message_id, target)
        return SendResult(ok=True, result=record)

    def process_inbound_update(self, raw: Any) -> Optional[InboundEvent]:
        return normalize_telegram_update(raw)


class SimulatedWhatsAppMessenger(_RecordingMessenger):
    name = 'whatsapp'

    def __init__(self,
                 access_token: Optional[str] = 'simulated-token',
                 phone_number_id: Optional[str] = 'simulated-phone'):
        super().__init__()
        self.access_token = access_token
        self.phone_number_id = phone_number_id

    def is_configured(self) -> bool:
        return bool(self.access_token) and bool(self.phone_number_id)

    async def send_message(self, target: str, text: str, options: Optional[dict] = None) -> SendResult:
        self._require_configured()
        if not target:
            return SendResult(ok=False, error_description="WhatsApp API error: recipient is required")
        message_id = f"wamid.{next(self._ids)}"
        self.sent.append({'to': target, 'text': text, 'id': message_id, **(options or {})})
        logger.debug("whatsapp message %s sent to %s", message_id, target)
        return SendResult(ok=True, result={
            'messaging_product': 'whatsapp',
            'contacts': [{'input': target, 'wa_id': target}],
            'messages': [{'id': message_id}],
        })

    @staticmethod
    def verify_webhook(mode: str, token: str, challenge: str, verify_token: str) -> Optional[str]:
        if mode == 'subscribe' and token == verify_token:
            return challenge
        return None

    def process_inbound_update(self, raw: Any) -> Optional[InboundEvent]:
        events = normalize_whatsapp_payload(raw)
        return events[0] if events else None
