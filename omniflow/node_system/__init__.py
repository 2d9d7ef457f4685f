from typing import Optional

from omniflow.models.factory.Nodes import BaseNodeModel, NodeKind
from omniflow.models.model_handler_result import HandlerResult
from omniflow.models.model_run_context import RunContext
from omniflow.node_system.Handler import HANDLER_REGISTRY, Handler, available_handlers, get_handler, pick
from omniflow.node_system.NodeAct import NodeAiProcessor, NodeApiCall, NodeDataTransformation
from omniflow.node_system.NodeBranch import NodeIfCondition, NodeSwitchCase
from omniflow.node_system.NodeCrypto import NodeCryptoTrade, NodeCryptoWallet, NodeTradingBot
from omniflow.node_system.NodeMessaging import (
    NodeTelegramBot,
    NodeTelegramInput,
    NodeWhatsAppInput,
    NodeWhatsAppOutput,
)
from omniflow.node_system.NodeSink import NodeChartOutput, NodeTextOutput
from omniflow.node_system.NodeSource import NodeFileUpload, NodeTextInput, NodeWebhookTrigger
from omniflow.node_system.NodeTransform import NodeDataTransformer, NodeTextProcessor


def is_supported(kind: NodeKind, name: str) -> bool:
    try:
        return (NodeKind(kind), name) in HANDLER_REGISTRY
    except ValueError:
        return False


async def execute_handler(kind: NodeKind,
                          name: str,
                          inputs: dict,
                          ctx: Optional[RunContext] = None,
                          node: Optional[BaseNodeModel] = None,
                          debug: bool = False) -> HandlerResult:
    """
    Run the handler registered for (kind, name) against resolved inputs.

    `node` supplies local configuration and the previous output; without it
    the handler sees an unconfigured node. Raises UnsupportedNodeError for
    an unknown pair and whatever the handler raises.
    """
    handler_cls = get_handler(kind, name)
    ctx = ctx or RunContext()
    if node is None:
        node = BaseNodeModel(id=f"{handler_cls.__name__}-adhoc", kind=kind, name=name)
    handler = handler_cls(node, ctx, debug=debug or ctx.config.debug)
    return await handler.run(inputs)


__all__ = [
    'HANDLER_REGISTRY',
    'Handler',
    'available_handlers',
    'execute_handler',
    'get_handler',
    'is_supported',
    'pick',
    'NodeAiProcessor',
    'NodeApiCall',
    'NodeChartOutput',
    'NodeCryptoTrade',
    'NodeCryptoWallet',
    'NodeDataTransformation',
    'NodeDataTransformer',
    'NodeFileUpload',
    'NodeIfCondition',
    'NodeSwitchCase',
    'NodeTelegramBot',
    'NodeTelegramInput',
    'NodeTextInput',
    'NodeTextOutput',
    'NodeTextProcessor',
    'NodeTradingBot',
    'NodeWebhookTrigger',
    'NodeWhatsAppInput',
    'NodeWhatsAppOutput',
]
