import logging
from typing import Optional

from omniflow.providers.base import GenerationProvider
from omniflow.providers.simulation import SimulationProvider
from omniflow.util.const import SIMULATION_PROVIDER

logger = logging.getLogger(__name__)

# Substring of the lowercased model name -> provider name
MODEL_PROVIDER_HINTS = (
    ("gpt", "openai"),
    ("gemini", "gemini"),
    ("claude", "anthropic"),
)


def provider_for_model(model: Optional[str]) -> str:
    lowered = (model or "").lower()
    for hint, provider in MODEL_PROVIDER_HINTS:
        if hint in lowered:
            return provider
    return SIMULATION_PROVIDER


class ProviderRegistry:
    """
    Name -> GenerationProvider lookup owned by a RunContext.

    The simulation provider is always registered, so best_available()
    never fails.
    """

    def __init__(self, simulation: Optional[SimulationProvider] = None):
        self._providers: dict[str, GenerationProvider] = {}
        self.register(simulation or SimulationProvider())

    def register(self, provider: GenerationProvider, name: Optional[str] = None) -> "ProviderRegistry":
        key = (name or provider.name).lower()
        if not key:
            raise ValueError("Provider name must not be empty")
        self._providers[key] = provider
        logger.debug("Registered generation provider %s (%s)", key, type(provider).__name__)
        return self

    def unregister(self, name: str) -> "ProviderRegistry":
        if name.lower() != SIMULATION_PROVIDER:
            self._providers.pop(name.lower(), None)
        return self

    def get(self, name: str) -> Optional[GenerationProvider]:
        return self._providers.get(name.lower())

    @property
    def providers(self) -> list[str]:
        return list(self._providers.keys())

    @property
    def simulation(self) -> GenerationProvider:
        return self._providers[SIMULATION_PROVIDER]

    def best_available(self, preferred: Optional[str] = None) -> GenerationProvider:
        if preferred:
            provider = self.get(preferred)
            if provider is not None and provider.is_configured():
                return provider

        for name, provider in self._providers.items():
            if name == SIMULATION_PROVIDER:
                continue
            if provider.is_configured():
                return provider

        return self.simulation

    def for_model(self, model: Optional[str]) -> GenerationProvider:
        return self.best_available(provider_for_model(model))

    def is_simulation(self, provider: GenerationProvider) -> bool:
        return provider is self.simulation
