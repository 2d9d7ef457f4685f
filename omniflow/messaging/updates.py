"""
Normalization of raw provider updates into InboundEvent objects.

Telegram sends one update per request (message, edited_message or
callback_query). WhatsApp business-account webhooks batch several messages
under entry[].changes[].value.messages[]. Malformed parts of an update are
skipped, never raised.
"""

import logging
from typing import Any, Optional

from omniflow.messaging.base import InboundEvent

logger = logging.getLogger(__name__)

WHATSAPP_MEDIA_TYPES = ('image', 'audio', 'video', 'document')


def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _text_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _telegram_user(raw: Any) -> Optional[dict]:
    if not raw or not isinstance(raw, dict):
        return None
    return {
        'id': raw.get('id'),
        'firstName': raw.get('first_name'),
        'lastName': raw.get('last_name'),
        'username': raw.get('username'),
    }


def normalize_telegram_update(update: Any) -> Optional[InboundEvent]:
    if not isinstance(update, dict) or not update:
        return None

    message = _as_dict(update.get('message')) or _as_dict(update.get('edited_message'))
    if message:
        chat = _as_dict(message.get('chat'))
        return InboundEvent(
            type='message',
            chat_id=_str_or_none(chat.get('id')),
            text=_text_or_none(message.get('text')),
            message_id=_str_or_none(message.get('message_id')),
            sender=_telegram_user(message.get('from')),
            extra={
                'date': message.get('date'),
                'chat': {'id': chat.get('id'), 'type': chat.get('type'), 'title': chat.get('title')},
                'edited': 'edited_message' in update and 'message' not in update,
            },
        )

    callback = _as_dict(update.get('callback_query'))
    if callback:
        callback_message = _as_dict(callback.get('message'))
        chat = _as_dict(callback_message.get('chat'))
        return InboundEvent(
            type='callback_query',
            chat_id=_str_or_none(chat.get('id')),
            text=_text_or_none(callback.get('data')),
            message_id=_str_or_none(callback.get('id')),
            sender=_telegram_user(callback.get('from')),
            extra={'message': callback_message or None, 'data': callback.get('data')},
        )

    logger.debug("Ignoring telegram update with keys %s", list(update.keys()))
    return None


def normalize_whatsapp_payload(body: Any) -> list[InboundEvent]:
    if not isinstance(body, dict) or body.get('object') != 'whatsapp_business_account':
        return []

    events = []
    for entry in _as_list(body.get('entry')):
        for change in _as_list(_as_dict(entry).get('changes')):
            change = _as_dict(change)
            if change.get('field') != 'messages':
                continue
            value = _as_dict(change.get('value'))
            contacts = _as_list(value.get('contacts'))
            sender = _as_dict(contacts[0]).get('wa_id') if contacts else None
            metadata = _as_dict(value.get('metadata'))

            for message in _as_list(value.get('messages')):
                if not isinstance(message, dict):
                    logger.debug("Skipping whatsapp message that is not an object: %r", message)
                    continue
                message_type = message.get('type')
                content = None
                if message_type == 'text':
                    content = _as_dict(message.get('text')).get('body')
                elif message_type in WHATSAPP_MEDIA_TYPES:
                    media = _as_dict(message.get(message_type))
                    content = {
                        'id': media.get('id'),
                        'type': message_type,
                        'mimeType': media.get('mime_type'),
                        'caption': media.get('caption'),
                    }

                events.append(InboundEvent(
                    type=message_type or 'unknown',
                    chat_id=_str_or_none(sender),
                    text=content if isinstance(content, str) else None,
                    message_id=_str_or_none(message.get('id')),
                    sender={'wa_id': sender} if sender else None,
                    extra={
                        'timestamp': message.get('timestamp'),
                        'content': content,
                        'metadata': {
                            'phoneNumberId': metadata.get('phone_number_id'),
                            'displayPhoneNumber': metadata.get('display_phone_number'),
                        },
                    },
                ))
    return events
