import logging

from omniflow.models.factory.Nodes import NodeKind
from omniflow.node_system.Handler import Handler, pick
from omniflow.providers import GenerationOptions
from omniflow.util import const
from omniflow.util.js_values import to_display_string, to_json

logger = logging.getLogger(__name__)


class NodeTextProcessor(Handler):
    """
    Text generation through the provider matching the configured model.

    gpt -> openai, gemini -> gemini, claude -> anthropic; anything else, or a
    provider without credentials, falls back to the simulation provider and
    reports isSimulation=True.
    """
    KIND = NodeKind.TRANSFORM
    NAME = const.TEXT_PROCESSOR

    async def process(self, inputs):
        text = self.value(inputs, 'text', 'Default text')
        if not isinstance(text, str):
            text = to_json(text)
        model = to_display_string(self.configured('model', 'GPT-4'))
        system_prompt = self.configured('prompt', 'You are a helpful assistant')

        registry = self.ctx.providers
        provider = registry.for_model(model)
        is_simulation = registry.is_simulation(provider)
        if is_simulation:
            self.log(f"Using simulation mode for {model} (no API key configured)")
        else:
            self.log(f"Connecting to {provider.name.upper()} API for {model}...")

        full_prompt = f"{system_prompt}\n\n{text}" if system_prompt else text
        started = self.ctx.now()
        response = await provider.generate(full_prompt, GenerationOptions(
            model=model,
            temperature=self.config.generation_temperature,
            max_tokens=self.config.generation_max_tokens,
            timeout_ms=self.config.generation_timeout_ms,
        ))
        elapsed = (self.ctx.now() - started).total_seconds()

        usage = response.token_usage
        self.log(f"{'Simulated' if is_simulation else 'Received'} response from {model}")
        self.log(f"Used {usage.total} tokens ({usage.prompt} prompt, {usage.completion} completion)")

        return {
            'result': response.text,
            'model': response.model,
            'tokenUsage': {
                'prompt_tokens': usage.prompt,
                'completion_tokens': usage.completion,
                'total_tokens': usage.total,
            },
            'processingTime': f"{elapsed:.2f}s",
            'isSimulation': is_simulation,
        }


class NodeDataTransformer(Handler):
    KIND = NodeKind.TRANSFORM
    NAME = const.DATA_TRANSFORMER

    async def process(self, inputs):
        data = pick(inputs.get('data'), {})
        transformation = to_display_string(self.configured('transformation', 'default'))
        now = self.ctx.now_iso()

        if isinstance(data, list):
            if 'map' in transformation:
                result = [{**item, 'processed': True} if isinstance(item, dict) else item for item in data]
            elif 'filter' in transformation:
                result = [item for item in data if isinstance(item, (dict, list))]
            else:
                result = list(data)
        elif isinstance(data, dict):
            result = {**data, 'processed': True, 'timestamp': now}
        else:
            result = {'originalValue': data, 'processed': True, 'timestamp': now}

        return {'result': result}
