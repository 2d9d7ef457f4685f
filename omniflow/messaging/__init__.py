from omniflow.messaging.base import InboundEvent, Messenger, SendResult
from omniflow.messaging.simulated import SimulatedTelegramMessenger, SimulatedWhatsAppMessenger
from omniflow.messaging.updates import normalize_telegram_update, normalize_whatsapp_payload

__all__ = [
    'InboundEvent',
    'Messenger',
    'SendResult',
    'SimulatedTelegramMessenger',
    'SimulatedWhatsAppMessenger',
    'normalize_telegram_update',
    'normalize_whatsapp_payload',
]
