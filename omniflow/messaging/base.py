import abc
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SendResult(BaseModel):
    ok: bool
    result: Any = None
    error_description: Optional[str] = None


class InboundEvent(BaseModel):
    """A provider update reduced to what a flow needs."""
    model_config = ConfigDict(extra='allow')

    type: str
    chat_id: Optional[str] = None
    text: Optional[str] = None
    message_id: Optional[str] = None
    sender: Optional[dict[str, Any]] = None
    extra: dict[str, Any] = Field(default_factory=dict)


class Messenger(abc.ABC):
    """
    Bot-messaging capability. Two integrations (telegram, whatsapp) share
    this shape; the engine never talks to a transport directly.
    """
    name: str = ''

    @abc.abstractmethod
    def is_configured(self) -> bool:
        pass

    @abc.abstractmethod
    async def send_message(self, target: str, text: str, options: Optional[dict] = None) -> SendResult:
        pass

    @abc.abstractmethod
    async def register_webhook(self, url: str) -> SendResult:
        pass

    @abc.abstractmethod
    async def remove_webhook(self) -> SendResult:
        pass

    @abc.abstractmethod
    def process_inbound_update(self, raw: Any) -> Optional[InboundEvent]:
        pass
