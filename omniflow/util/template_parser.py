from jinja2 import Environment

from omniflow.util.js_values import to_number

env = Environment(keep_trailing_newline=False)


def short_address(address, head=8, tail=6):
    address = str(address or 'unknown')
    return f"{address[:head]}...{address[-tail:]}"


def money(value, default='market price'):
    """'$123.45' for anything numeric, else the default text."""
    if value is None or value == '':
        return default
    number = to_number(value)
    if number != number:
        return default
    return f"${number:.2f}"


env.filters['short_address'] = short_address
env.filters['money'] = money

WALLET_UPDATE_TEMPLATE = (
    "💼 *Wallet Update*\n"
    "Network: {{ wallet.network or 'Ethereum' }}\n"
    "Address: {{ wallet.address | short_address }}\n"
    "Balance: {{ balance }} {{ wallet.currency or 'ETH' }}"
)

RECOMMENDATION_TEMPLATE = (
    "🤖 *Trading Recommendation*\n"
    "Action: {{ (rec.action or 'hold') | upper }}\n"
    "Token: {{ rec.token or 'BTC' }}\n"
    "Price: {{ rec.price | money }}\n"
    "Reason: {{ rec.reason or 'Market analysis' }}"
)

TRADE_EXECUTED_TEMPLATE = (
    "🔄 *Trade Executed*\n"
    "Action: {{ (trade.action or 'buy') | upper }}\n"
    "Token: {{ trade.token or 'BTC' }}\n"
    "Amount: {{ trade.amount or '0' }}\n"
    "Price: {{ trade.price | money }}\n"
    "Total: {{ trade.total | money('N/A') }}"
)

MARKDOWN_OUTPUT_TEMPLATE = "**Markdown Output:**\n{{ text }}"

HTML_OUTPUT_TEMPLATE = "<div><strong>HTML Output:</strong><div>{{ text }}</div></div>"


def template_parse(template, params):
    t = env.from_string(template)
    return t.render(params)
