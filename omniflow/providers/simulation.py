import asyncio
import re
from typing import Optional

from omniflow.providers.base import GenerationOptions, GenerationProvider, GenerationResult, TokenUsage
from omniflow.util.const import SIMULATION_PROVIDER


def _word_count(text: str) -> int:
    return len(re.split(r'\s+', text))


class SimulationProvider(GenerationProvider):
    """Always-configured fallback that answers with canned text per model family."""
    name = SIMULATION_PROVIDER

    MODELS = ["gpt-4-simulation", "gemini-pro-simulation", "claude-3-simulation"]

    def __init__(self, default_model: str = "gemini-pro-simulation", delay_scale: float = 1.0):
        self._default_model = default_model
        self.delay_scale = delay_scale

    def is_configured(self) -> bool:
        return True

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def available_models(self) -> list[str]:
        return list(self.MODELS)

    def processing_delay(self, prompt: str) -> float:
        return min(2.0, 0.5 + len(prompt) * 0.005) * self.delay_scale

    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> GenerationResult:
        options = options or GenerationOptions()
        delay = self.processing_delay(prompt)
        if delay > 0:
            await asyncio.sleep(delay)

        model = options.model or self._default_model
        text = self.simulated_response(model, prompt)
        prompt_tokens = _word_count(prompt)
        completion_tokens = _word_count(text)
        return GenerationResult(
            text=text,
            model=model,
            token_usage=TokenUsage(
                prompt=prompt_tokens,
                completion=completion_tokens,
                total=prompt_tokens + completion_tokens,
            ),
        )

    @staticmethod
    def simulated_response(model: str, prompt: str) -> str:
        if not prompt or not prompt.strip():
            return f"{model} requires a non-empty prompt to generate a response."

        if "gemini" in model:
            if "?" in prompt:
                return (f'Gemini Pro analysis: Based on your question "{prompt}", I would suggest exploring '
                        f'multiple perspectives. The answer depends on several factors including context, '
                        f'timing, and specific requirements.')
            return (f'Gemini Pro generated content based on: "{prompt}"\n\n'
                    f'The provided input appears to be a statement or instruction. I\'ve analyzed this and '
                    f'can provide additional context or elaboration if needed.')
        if "gpt" in model:
            if "how" in prompt.lower():
                return (f'GPT-4 response: To address "{prompt}", I recommend the following step-by-step approach:\n\n'
                        f'1. First, assess your current situation\n'
                        f'2. Identify key objectives\n'
                        f'3. Develop a strategic plan\n'
                        f'4. Implement with careful monitoring\n'
                        f'5. Evaluate results and adjust as needed')
            return (f'GPT-4 analysis: "{prompt}"\n\n'
                    f'This is an interesting topic that can be examined from multiple angles. Let me provide '
                    f'a comprehensive overview with key considerations and potential implications.')
        if "claude" in model:
            return (f'Claude\'s thoughtful response to "{prompt}":\n\n'
                    f'I\'ve carefully considered your input and would like to offer a nuanced perspective. '
                    f'This topic involves several interconnected elements that benefit from a holistic analysis.')
        return (f'AI model {model} processed: "{prompt}"\n\n'
                f'This is a simulated response for demonstration purposes.')
