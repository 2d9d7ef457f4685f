import abc
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class GenerationOptions(BaseModel):
    model: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout_ms: int = 30000


class TokenUsage(BaseModel):
    prompt: int = 0
    completion: int = 0
    total: int = 0


class GenerationResult(BaseModel):
    text: str
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: int = 200


class GenerationProvider(abc.ABC):
    """
    Text-generation capability consumed by transform and act handlers.

    Implementations raise ProviderUnconfigured, ProviderTimeout or
    ProviderHttpError; they never return partial results.
    """
    name: str = ''

    @abc.abstractmethod
    def is_configured(self) -> bool:
        pass

    @property
    @abc.abstractmethod
    def default_model(self) -> str:
        pass

    @property
    def available_models(self) -> list[str]:
        return [self.default_model]

    @abc.abstractmethod
    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> GenerationResult:
        pass
