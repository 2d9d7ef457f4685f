"""
Simulated crypto wallet, trading bot and trade handlers.

All randomness comes from the run context's rng, so a seeded context gives
reproducible prices, balances and recommendations.
"""

import logging
import random
from typing import Any, Optional

from omniflow.models.factory.Nodes import NodeKind
from omniflow.node_system.Handler import Handler
from omniflow.util import const
from omniflow.util.js_values import to_number

logger = logging.getLogger(__name__)

HEX_CHARS = '0123456789abcdef'
HEX_PREFIX_NETWORKS = ('Ethereum', 'Binance Smart Chain', 'Polygon')

NETWORK_CURRENCY = {
    'Ethereum': 'ETH',
    'Binance Smart Chain': 'BNB',
    'Polygon': 'MATIC',
    'Solana': 'SOL',
}

NETWORK_BALANCE_CEILING = {
    'Ethereum': 10,
    'Binance Smart Chain': 100,
    'Polygon': 1000,
    'Solana': 100,
}

# token -> (base, spread)
TOKEN_PRICE_RANGE = {
    'BTC': (30000, 10000),
    'ETH': (1800, 400),
    'SOL': (80, 40),
    'BNB': (200, 100),
    'MATIC': (0.5, 0.5),
    'USDT': (0.99, 0.02),
    'USDC': (0.99, 0.02),
}

SENTIMENTS = ('Bearish', 'Neutral', 'Bullish')


def random_hex(rng: random.Random, length: int, network: str) -> str:
    prefix = '0x' if network in HEX_PREFIX_NETWORKS else ''
    return prefix + ''.join(rng.choice(HEX_CHARS) for _ in range(length))


def random_address(rng: random.Random, network: str) -> str:
    return random_hex(rng, 44 if network == 'Solana' else 40, network)


def random_balance(rng: random.Random, network: str) -> str:
    return f"{rng.random() * NETWORK_BALANCE_CEILING.get(network, 10):.4f}"


def currency_for_network(network: str) -> str:
    return NETWORK_CURRENCY.get(network, 'ETH')


def random_price(rng: random.Random, token: str) -> float:
    base, spread = TOKEN_PRICE_RANGE.get(str(token).upper(), (10, 90))
    return base + rng.random() * spread


def extract_wallet_info(value: Any, unwrap_transaction: bool = False) -> Optional[dict]:
    """
    Find wallet info in whatever shape an upstream node delivered.

    A whole wallet-node output ({'walletInfo': {...}}) is unwrapped; with
    unwrap_transaction, a trade record carrying 'wallet' becomes a wallet.
    """
    if not isinstance(value, dict):
        return value or None
    if isinstance(value.get('walletInfo'), dict):
        return value['walletInfo']
    if unwrap_transaction and not value.get('address') and value.get('wallet'):
        return {
            'address': value['wallet'],
            'network': value.get('network') or 'Ethereum',
            'lastUpdated': value.get('timestamp'),
        }
    return value


def is_wallet_connected(wallet: Any) -> bool:
    return isinstance(wallet, dict) and (wallet.get('connected') is True or bool(wallet.get('address')))


class NodeCryptoWallet(Handler):
    KIND = NodeKind.TRANSFORM
    NAME = const.CRYPTO_WALLET

    async def process(self, inputs):
        connection_type = self.configured('connectionType', 'Wallet Address')
        private_key = self.configured('privateKey', '')
        wallet_address = self.configured('walletAddress', '')
        network = self.configured('network', 'Ethereum')

        can_connect = bool(private_key) if connection_type == 'Private Key' else bool(wallet_address)
        if not can_connect:
            self.log("Wallet not connected: missing credentials")
            return {'connected': False, 'walletInfo': None, 'balance': 0}

        rng = self.ctx.rng
        address = wallet_address or random_address(rng, network)
        self.log(f"Connected to {network} wallet {address[:8]}...")
        return {
            'connected': True,
            'walletInfo': {
                'address': address,
                'network': network,
                'currency': currency_for_network(network),
                'connectionType': connection_type,
                'lastUpdated': self.ctx.now_iso(),
                'connected': True,
            },
            'balance': random_balance(rng, network),
        }


class NodeTradingBot(Handler):
    """
    Strategy-driven recommendation over simulated market data.

    Conservative picks a token with |change| < 3%, Aggressive one with
    |change| > 5%, Balanced any token. Wallet info is passed through.
    """
    KIND = NodeKind.TRANSFORM
    NAME = const.TRADING_BOT

    async def process(self, inputs):
        wallet = extract_wallet_info(self.value(inputs, 'walletInfo'))
        if not is_wallet_connected(wallet):
            return {
                'recommendation': {
                    'action': 'none',
                    'token': 'N/A',
                    'reason': 'Wallet not connected. Please connect a wallet first.',
                },
                'analysis': None,
                'performance': None,
            }

        strategy = self.configured('strategy', 'Balanced')
        tokens = self.configured('tokens', ['ETH', 'BTC'])
        if isinstance(tokens, str):
            tokens = [t.strip() for t in tokens.split(',') if t.strip()]
        tokens = list(tokens) or ['ETH', 'BTC']
        budget = to_number(self.configured('budget', 1000))
        timeframe = self.configured('timeframe', '4h')
        rng = self.ctx.rng

        market = [{
            'token': token,
            'price': random_price(rng, token),
            'change24h': f"{rng.random() * 20 - 10:.2f}",
            'volume': int(rng.random() * 1_000_000_000),
            'marketCap': int(rng.random() * 100_000_000_000),
            'sentiment': rng.choice(SENTIMENTS),
        } for token in tokens]

        action, token, reason = self._recommend(strategy, market, rng)
        self.log(f"{strategy} strategy recommends {action.upper()} {token}")

        if strategy == 'Conservative':
            profit = rng.random() * 15 - 5
        elif strategy == 'Aggressive':
            profit = rng.random() * 40 - 20
        else:
            profit = rng.random() * 25 - 10
        win_rate = 50 + (rng.random() * 30 - 15)

        price = next((t['price'] for t in market if t['token'] == token), None)
        return {
            'recommendation': {
                'action': action,
                'token': token,
                'amount': f"{budget * 0.1:.2f}",
                'price': price,
                'reason': reason,
            },
            'analysis': {
                'market': market,
                'timeframe': timeframe,
                'timestamp': self.ctx.now_iso(),
            },
            'performance': {
                'winRate': f"{win_rate:.1f}",
                'profit': f"{profit:.2f}",
                'tradesExecuted': rng.randrange(50) + 10,
                'successfulTrades': rng.randrange(30) + 5,
                'averageReturn': f"{profit / 10:.2f}",
            },
            'walletInfo': wallet,
        }

    @staticmethod
    def _recommend(strategy, market, rng):
        if strategy == 'Conservative':
            stable = [t for t in market if abs(float(t['change24h'])) < 3]
            if not stable:
                return 'hold', 'USDT', 'Market volatility detected. Recommend holding stable assets.'
            chosen = rng.choice(stable)
            action = 'buy' if float(chosen['change24h']) > 0 else 'hold'
            return action, chosen['token'], (
                f"{chosen['token']} shows stable performance with {chosen['change24h']}% change in 24h. "
                f"{chosen['sentiment']} sentiment detected.")

        if strategy == 'Aggressive':
            volatile = [t for t in market if abs(float(t['change24h'])) > 5]
            if not volatile:
                return 'buy', market[0]['token'], \
                    'No high volatility detected. Recommend cautious buying based on market trends.'
            chosen = rng.choice(volatile)
            action = 'buy' if float(chosen['change24h']) > 0 else 'sell'
            return action, chosen['token'], (
                f"{chosen['token']} shows high volatility with {chosen['change24h']}% change in 24h. "
                f"Opportunity for {action} based on {chosen['sentiment']} sentiment.")

        chosen = rng.choice(market)
        change = float(chosen['change24h'])
        action = 'buy' if change > 2 else 'sell' if change < -2 else 'hold'
        return action, chosen['token'], (
            f"{chosen['token']} shows {chosen['change24h']}% change in 24h. "
            f"{chosen['sentiment']} market sentiment suggests {action} action.")


class NodeCryptoTrade(Handler):
    KIND = NodeKind.ACT
    NAME = const.CRYPTO_TRADE

    async def process(self, inputs):
        wallet = extract_wallet_info(self.value(inputs, 'walletInfo'), unwrap_transaction=True)
        recommendation = inputs.get('recommendation')

        action = self.configured('action', 'Buy')
        token = self.configured('token', 'ETH')
        amount = self.configured('amount', 0.1)
        if isinstance(recommendation, dict):
            if recommendation.get('action'):
                rec_action = str(recommendation['action'])
                action = rec_action[:1].upper() + rec_action[1:].lower()
            if recommendation.get('token'):
                token = recommendation['token']
            if recommendation.get('amount'):
                amount = recommendation['amount']
        amount = to_number(amount)

        if not is_wallet_connected(wallet):
            self.log("Trade failed: no wallet connected")
            return {
                'status': 'failed',
                'error': 'No wallet connected. Please connect a wallet first.',
                'walletInfo': wallet,
            }

        await self.delay(0.5)
        network = wallet.get('network') or 'Ethereum'
        price = random_price(self.ctx.rng, token)
        self.log(f"{action} {amount} {token} at ${price:.2f}")
        return {
            'status': 'completed',
            'transactionId': random_hex(self.ctx.rng, 64, network),
            'details': {
                'action': action,
                'token': token,
                'amount': amount,
                'price': f"{price:.2f}",
                'total': price * amount,
                'timestamp': self.ctx.now_iso(),
                'wallet': wallet.get('address'),
                'network': network,
            },
            'walletInfo': wallet,
        }
