import asyncio
import logging
from typing import Optional

from magic_llm import MagicLLM
from magic_llm.model import ModelChat

from omniflow.errors import ProviderError, ProviderHttpError, ProviderTimeout, ProviderUnconfigured
from omniflow.providers.base import GenerationOptions, GenerationProvider, GenerationResult, TokenUsage

logger = logging.getLogger(__name__)


class MagicLLMProvider(GenerationProvider):
    """
    Generation through a MagicLLM client.

    Either pass a ready client or the engine/model/api_key triple; a missing
    key leaves the provider unconfigured instead of failing at construction.
    """

    def __init__(self,
                 name: str,
                 engine: Optional[str] = None,
                 model: Optional[str] = None,
                 api_key: Optional[str] = None,
                 client: Optional[MagicLLM] = None,
                 **client_args):
        self.name = name
        self._model = model or ''
        self.client = client
        self.init_error = None

        if client is None and api_key:
            args = {
                'engine': engine,
                'model': model,
                **client_args,
            }
            # MagicLLM uses `private_key`
            args['private_key'] = api_key
            try:
                self.client = MagicLLM(**args)
                logger.info("MagicLLMProvider:%s client initialized (engine=%s model=%s)", name, engine, model)
            except Exception as e:
                self.init_error = str(e)
                logger.error("MagicLLMProvider:%s failed to initialize client: %s", name, self.init_error)

    def is_configured(self) -> bool:
        return self.client is not None

    @property
    def default_model(self) -> str:
        if self.client is not None:
            return getattr(self.client.llm, 'model', None) or self._model
        return self._model

    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> GenerationResult:
        options = options or GenerationOptions()
        if not self.is_configured():
            reason = self.init_error or "no API key configured"
            raise ProviderUnconfigured(f"{self.name} is not configured: {reason}", provider=self.name)

        chat = ModelChat()
        chat.add_user_message(prompt)
        timeout = options.timeout_ms / 1000
        try:
            response = await asyncio.wait_for(
                self.client.llm.async_generate(chat,
                                               temperature=options.temperature,
                                               max_tokens=options.max_tokens),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderTimeout(f"{self.name} did not answer within {options.timeout_ms}ms",
                                  provider=self.name, timeout_ms=options.timeout_ms) from e
        except ProviderError:
            raise
        except Exception as e:
            status = getattr(e, 'status', None) or getattr(e, 'status_code', None)
            raise ProviderHttpError(f"{self.name} request failed: {e}", provider=self.name, status=status) from e

        usage = getattr(response, 'usage', None)
        prompt_tokens = getattr(usage, 'prompt_tokens', 0) or 0
        completion_tokens = getattr(usage, 'completion_tokens', 0) or 0
        total_tokens = getattr(usage, 'total_tokens', 0) or prompt_tokens + completion_tokens
        return GenerationResult(
            text=response.content or '',
            model=self.default_model or options.model or '',
            token_usage=TokenUsage(prompt=prompt_tokens, completion=completion_tokens, total=total_tokens),
        )
