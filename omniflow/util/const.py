from omniflow.models.factory.Nodes.BaseNodeModel import NodeKind

# Scheduler phases, in execution order
PHASE_ORDER = (
    NodeKind.SOURCE,
    NodeKind.TRANSFORM,
    NodeKind.ACT,
    NodeKind.BRANCH,
    NodeKind.SINK,
)

# Handler display names
TEXT_INPUT = 'Text Input'
FILE_UPLOAD = 'File Upload'
WEBHOOK_TRIGGER = 'Webhook Trigger'
TELEGRAM_INPUT = 'Telegram Input'
WHATSAPP_INPUT = 'WhatsApp Input'

TEXT_PROCESSOR = 'Text Processor'
DATA_TRANSFORMER = 'Data Transformer'
CRYPTO_WALLET = 'Crypto Wallet'
TRADING_BOT = 'Trading Bot'

API_CALL = 'API Call'
AI_PROCESSOR = 'AI Processor'
DATA_TRANSFORMATION = 'Data Transformation'
CRYPTO_TRADE = 'Crypto Trade'
TELEGRAM_BOT = 'Telegram Bot'

IF_CONDITION = 'If Condition'
SWITCH_CASE = 'Switch Case'

TEXT_OUTPUT = 'Text Output'
CHART_OUTPUT = 'Chart Output'
WHATSAPP_OUTPUT = 'WhatsApp Output'

# Simulation provider name; always registered
SIMULATION_PROVIDER = 'simulation'
