from omniflow.providers.base import GenerationOptions, GenerationProvider, GenerationResult, TokenUsage
from omniflow.providers.magic_llm_provider import MagicLLMProvider
from omniflow.providers.registry import ProviderRegistry, provider_for_model
from omniflow.providers.simulation import SimulationProvider

__all__ = [
    'GenerationOptions',
    'GenerationProvider',
    'GenerationResult',
    'TokenUsage',
    'MagicLLMProvider',
    'ProviderRegistry',
    'SimulationProvider',
    'provider_for_model',
]
