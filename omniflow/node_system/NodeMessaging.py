"""
Messaging-bot handlers.

Inbound handlers synthesize (or normalize) a received message; outbound
handlers format a message from whatever upstream payload is present and
send it through the run context's messenger. Upstream payloads are passed
through unchanged so nodes further down still see them.
"""

import logging
from typing import Any, Optional

from omniflow.errors import ProviderHttpError
from omniflow.models.factory.Nodes import NodeKind
from omniflow.node_system.Handler import Handler
from omniflow.util import const
from omniflow.util.js_values import to_display_string, to_json
from omniflow.util.template_parser import (
    RECOMMENDATION_TEMPLATE,
    TRADE_EXECUTED_TEMPLATE,
    WALLET_UPDATE_TEMPLATE,
    template_parse,
)

logger = logging.getLogger(__name__)

SIMULATED_COMMANDS = (
    "/status",
    "/balance",
    "/buy BTC",
    "/sell ETH",
    "/price BTC",
    "/portfolio",
    "What's my portfolio?",
    "Show me the market",
)

NOT_CONFIGURED = "Telegram is not configured"


def parse_bot_command(text: Optional[str]) -> Optional[dict]:
    """
    Map a chat message to a command payload.

    '/buy BTC' -> {'action': 'buy', 'token': 'BTC', 'amount': 0.1}
    """
    if not text:
        return None
    lowered = text.lower()
    parts = text.split(' ')
    token = parts[1] if len(parts) > 1 else 'BTC'

    if text.startswith('/buy') or 'buy' in lowered:
        return {'action': 'buy', 'token': token, 'amount': 0.1}
    if text.startswith('/sell') or 'sell' in lowered:
        return {'action': 'sell', 'token': token, 'amount': 0.1}
    if text.startswith('/balance') or 'balance' in lowered:
        return {'action': 'getBalance'}
    if text.startswith('/portfolio') or 'portfolio' in lowered:
        return {'action': 'getPortfolio'}
    if text.startswith('/price') or 'price' in lowered:
        return {'action': 'getPrice', 'token': token}
    if text.startswith('/status') or 'status' in lowered:
        return {'action': 'getStatus'}
    return None


def compose_bot_message(message: str,
                        wallet: Any = None,
                        recommendation: Any = None,
                        trade: Any = None,
                        balance: Any = None) -> str:
    """
    Human-readable message for the richest payload present.

    Trade details beat a recommendation, which beats wallet info. A payload
    is ignored when the configured message already mentions it.
    """
    generated = message
    if isinstance(wallet, dict) and 'wallet' not in message:
        generated = template_parse(WALLET_UPDATE_TEMPLATE, {
            'wallet': wallet,
            'balance': to_display_string(wallet.get('balance') or balance or '0'),
        })
    if isinstance(recommendation, dict) and 'recommendation' not in message:
        generated = template_parse(RECOMMENDATION_TEMPLATE, {'rec': recommendation})
    if isinstance(trade, dict) and 'trade' not in message:
        generated = template_parse(TRADE_EXECUTED_TEMPLATE, {'trade': trade})
    return generated


class NodeTelegramInput(Handler):
    """
    Inbound telegram message.

    A raw update configured on the `update` slot is normalized through the
    telegram messenger; otherwise a command is picked at random.
    """
    KIND = NodeKind.SOURCE
    NAME = const.TELEGRAM_INPUT

    async def process(self, inputs):
        bot_token = self.configured('botToken', '')
        chat_id = self.configured('chatId', '')
        bot_name = self.configured('botName', 'Trading Bot')

        if not (bot_token and chat_id):
            self.log(f"Error: {NOT_CONFIGURED}. Please configure bot token and chat ID.")
            return {'connected': False, 'error': NOT_CONFIGURED, 'receivedMessage': None}

        raw_update = self.value(inputs, 'update')
        event = self.ctx.messenger('telegram').process_inbound_update(raw_update) if raw_update else None
        if event is not None:
            text = event.text or ''
            sender = event.sender or {}
        else:
            text = self.ctx.rng.choice(SIMULATED_COMMANDS)
            sender = {'id': self.ctx.rng.randrange(1_000_000), 'username': 'simulated_user'}
        self.log(f"Received Telegram message: {text}")

        output = {
            'connected': True,
            'telegramInfo': {
                'botToken': bot_token,
                'chatId': chat_id,
                'botName': bot_name,
                'lastUpdated': self.ctx.now_iso(),
            },
            'receivedMessage': {
                'text': text,
                'receivedAt': self.ctx.now_iso(),
                'from': sender,
            },
        }
        command = parse_bot_command(text)
        if command is not None:
            output['command'] = command
        return output


class NodeWhatsAppInput(Handler):
    KIND = NodeKind.SOURCE
    NAME = const.WHATSAPP_INPUT

    async def process(self, inputs):
        webhook = self.value(inputs, 'webhook')
        event = self.ctx.messenger('whatsapp').process_inbound_update(webhook) if webhook else None
        if event is not None:
            self.log(f"Received WhatsApp {event.type} message from {event.chat_id}")
            return {
                'message': event.extra.get('content'),
                'sender': event.chat_id or '',
                'timestamp': event.extra.get('timestamp') or self.ctx.now_iso(),
                'metadata': event.extra.get('metadata', {}),
            }

        return {
            'message': self.configured('message', ''),
            'sender': self.configured('sender', ''),
            'timestamp': self.configured('timestamp', self.ctx.now_iso()),
            'metadata': {'source': 'simulation'},
        }


class NodeTelegramBot(Handler):
    KIND = NodeKind.ACT
    NAME = const.TELEGRAM_BOT

    async def process(self, inputs):
        bot_token = self.configured('botToken', '')
        chat_id = self.configured('chatId', '')
        bot_name = self.configured('botName', 'Trading Bot')
        message = to_display_string(self.value(inputs, 'message', 'Hello from Telegram Bot!'))

        wallet = inputs.get('walletInfo') or None
        recommendation = inputs.get('recommendation') or None
        trade = inputs.get('tradeDetails') or inputs.get('details') or None
        if wallet:
            self.log("Received wallet info from connected node")
        if recommendation:
            self.log("Received trading recommendation from connected node")
        if trade:
            self.log("Received trade details from connected node")

        passthrough = {}
        if wallet:
            passthrough['walletInfo'] = wallet
        if recommendation:
            passthrough['recommendation'] = recommendation
        if trade:
            passthrough['tradeDetails'] = trade

        if not (bot_token and chat_id):
            self.log(f"Error: {NOT_CONFIGURED}. Please configure bot token and chat ID.")
            return {
                'connected': False,
                'error': NOT_CONFIGURED,
                'messagesSent': 0,
                **passthrough,
            }

        text = compose_bot_message(message, wallet, recommendation, trade, inputs.get('balance'))
        self.log(f"Sending Telegram message to chat ID: {chat_id}")
        self.log(f"Message: {text}")

        messenger = self.ctx.messenger('telegram')
        await self.delay(1.0)
        sent = await messenger.send_message(str(chat_id), text, {'parse_mode': 'Markdown'})
        if not sent.ok:
            raise ProviderHttpError(f"Telegram send failed: {sent.error_description}", provider='telegram')

        self.log("Telegram message sent successfully!")
        previous_count = self.previous_output.get('messagesSent') or 0
        return {
            'connected': True,
            'telegramInfo': {
                'botToken': bot_token,
                'chatId': chat_id,
                'botName': bot_name,
                'lastUpdated': self.ctx.now_iso(),
            },
            'lastMessage': {
                'text': text,
                'sentAt': self.ctx.now_iso(),
                'status': 'sent',
            },
            'messagesSent': previous_count + 1,
            **passthrough,
        }


class NodeWhatsAppOutput(Handler):
    """Sends the resolved message to the configured recipient and shows delivery details."""
    KIND = NodeKind.SINK
    NAME = const.WHATSAPP_OUTPUT

    async def process(self, inputs):
        message = inputs.get('message')
        if message is None:
            message = ''
        recipient = self.configured('recipient', '')
        display = {
            'message': message,
            'recipient': recipient,
            'timestamp': self.configured('timestamp', self.ctx.now_iso()),
            'delivered': False,
        }

        if recipient and message != '':
            messenger = self.ctx.messenger('whatsapp')
            await self.delay(1.0)
            text = message if isinstance(message, str) else to_json(message)
            sent = await messenger.send_message(str(recipient), text)
            if not sent.ok:
                raise ProviderHttpError(f"WhatsApp send failed: {sent.error_description}", provider='whatsapp')
            display['delivered'] = True
            messages = sent.result.get('messages') if isinstance(sent.result, dict) else None
            display['messageId'] = messages[0].get('id') if messages else None
        else:
            self.log("No recipient or message; nothing sent")

        self.log(f"WhatsApp Output: {to_json(display)}")
        return display
