import logging

from omniflow.models.factory.Nodes import NodeKind
from omniflow.node_system.Handler import Handler
from omniflow.util import const

logger = logging.getLogger(__name__)


class NodeTextInput(Handler):
    KIND = NodeKind.SOURCE
    NAME = const.TEXT_INPUT

    async def process(self, inputs):
        return {'value': self.configured('placeholder', 'Sample text')}


class NodeFileUpload(Handler):
    KIND = NodeKind.SOURCE
    NAME = const.FILE_UPLOAD

    async def process(self, inputs):
        return {
            'value': {
                'name': self.configured('fileName', 'example.txt'),
                'type': self.configured('fileType', 'text/plain'),
                'size': 1024,
                'content': 'This is a simulated file content for testing purposes.',
            }
        }


class NodeWebhookTrigger(Handler):
    """Fabricates the payload a webhook call would have delivered."""
    KIND = NodeKind.SOURCE
    NAME = const.WEBHOOK_TRIGGER

    async def process(self, inputs):
        return {
            'payload': {
                'message': 'Webhook triggered',
                'timestamp': self.ctx.now_iso(),
                'data': {
                    'id': self.ctx.rng.randrange(1000),
                    'event': self.configured('event', 'user.created'),
                    'metadata': {
                        'source': 'simulation',
                        'version': '1.0',
                    },
                },
            }
        }
