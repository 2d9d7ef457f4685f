import random
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from omniflow.config import EngineConfig
from omniflow.errors import ProviderUnconfigured
from omniflow.messaging import Messenger, SimulatedTelegramMessenger, SimulatedWhatsAppMessenger
from omniflow.providers import ProviderRegistry, SimulationProvider


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RunContext(BaseModel):
    """
    Capabilities handed to every handler: generation providers, messengers,
    randomness and time. Tests inject seeded or fake versions here.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    config: EngineConfig = Field(default_factory=EngineConfig)
    providers: Optional[ProviderRegistry] = None
    messengers: dict[str, Messenger] = Field(default_factory=dict)
    rng: random.Random = Field(default_factory=random.Random)
    clock: Callable[[], datetime] = _utc_now

    @model_validator(mode='after')
    def fill_defaults(self):
        if self.providers is None:
            self.providers = ProviderRegistry(SimulationProvider(delay_scale=self.config.delay_scale))
        self.messengers.setdefault('telegram', SimulatedTelegramMessenger())
        self.messengers.setdefault('whatsapp', SimulatedWhatsAppMessenger())
        return self

    def messenger(self, name: str) -> Messenger:
        try:
            return self.messengers[name]
        except KeyError:
            raise ProviderUnconfigured(f"No messenger registered for {name}", provider=name) from None

    def now(self) -> datetime:
        return self.clock()

    def now_iso(self) -> str:
        return self.clock().isoformat()

    def timestamp(self) -> str:
        """Console line prefix, e.g. '[14:03:27]'."""
        return f"[{self.clock().strftime('%H:%M:%S')}]"
