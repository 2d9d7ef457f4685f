import logging

from omniflow.errors import ProviderError
from omniflow.models.factory.Nodes import NodeKind
from omniflow.node_system.Handler import Handler, pick
from omniflow.providers import GenerationOptions
from omniflow.util import const
from omniflow.util.const import SIMULATION_PROVIDER
from omniflow.util.js_values import to_display_string, to_number
from omniflow.util.transforms import apply_transformation

logger = logging.getLogger(__name__)


class NodeApiCall(Handler):
    """
    Simulated HTTP call; no request leaves the process.

    example.com URLs answer with an echo of the request, URLs containing
    "error" answer with status 500, anything else with a generic payload.
    """
    KIND = NodeKind.ACT
    NAME = const.API_CALL

    async def process(self, inputs):
        url = to_display_string(self.value(inputs, 'url', 'https://api.example.com'))
        method = to_display_string(self.value(inputs, 'method', 'GET')).upper()
        headers = self.value(inputs, 'headers', {})
        body = self.value(inputs, 'body', {})

        self.log(f"{method} {url}")
        await self.delay(0.8)

        if 'example.com' in url:
            response = {
                'success': True,
                'data': {
                    'id': self.ctx.rng.randrange(10000),
                    'timestamp': self.ctx.now_iso(),
                    'method': method,
                    'receivedHeaders': headers,
                    'receivedBody': body if method != 'GET' else None,
                },
                'message': 'Simulated API response',
            }
        elif 'error' in url:
            self.log("API returned error status 500")
            return {
                'response': {'error': 'API returned error status 500'},
                'status': 500,
                'headers': {'content-type': 'application/json', 'x-error': 'true'},
            }
        else:
            response = {
                'status': 'success',
                'data': {
                    'result': f"Simulated response for {url}",
                    'timestamp': self.ctx.now_iso(),
                },
            }

        return {
            'response': response,
            'status': 200,
            'headers': {'content-type': 'application/json', 'x-powered-by': 'Omniflow Simulator'},
        }


class NodeAiProcessor(Handler):
    KIND = NodeKind.ACT
    NAME = const.AI_PROCESSOR

    async def process(self, inputs):
        prompt = to_display_string(self.value(inputs, 'prompt', ''))
        model = to_display_string(self.value(inputs, 'model', 'gemini-pro'))
        temperature = to_number(self.value(inputs, 'temperature', self.config.generation_temperature))
        if temperature != temperature:
            temperature = self.config.generation_temperature

        registry = self.ctx.providers
        provider = registry.best_available('gemini' if 'gemini' in model else SIMULATION_PROVIDER)
        self.log(f"Generating with {provider.name} ({model})")
        try:
            response = await provider.generate(prompt, GenerationOptions(
                model=model,
                temperature=temperature,
                max_tokens=self.config.generation_max_tokens,
                timeout_ms=self.config.generation_timeout_ms,
            ))
        except ProviderError as e:
            logger.warning("NodeAiProcessor:%s provider %s failed: %s", self.node_id, provider.name, e)
            self.log(f"Generation failed: {e}")
            return {
                'response': f"Error processing with AI: {e}",
                'status': 500,
                'fullResponse': {'error': str(e)},
            }

        return {
            'response': response.text,
            'status': response.status,
            'fullResponse': response.model_dump(mode='json'),
        }


class NodeDataTransformation(Handler):
    KIND = NodeKind.ACT
    NAME = const.DATA_TRANSFORMATION

    async def process(self, inputs):
        data = pick(inputs.get('data'), {})
        kind = to_display_string(self.configured('type', 'default'))
        filter_key = self.configured('filterKey')
        self.log(f"Applying {kind} transformation")
        return {
            'result': apply_transformation(kind, data, self.ctx.now_iso(), filter_key),
            'status': 200,
        }
