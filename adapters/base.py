from abc import ABC, abstractmethod
from typing import Any

from schemas.message import InboundEvent

class BaseAdapter(ABC):

    @abstractmethod
    def verify_signature(self, signature: str | None, body: bytes) -> None:
        """Raise SignatureInvalid unless the raw body was signed by the platform."""

    @abstractmethod
    def load_payload(self, body: bytes) -> Any:
        pass

    @abstractmethod
    def parse_events(self, payload: Any) -> list[InboundEvent]:
        pass

    @abstractmethod
    async def send_reply(self, reply_token: str, reply_text: str) -> None:
        """Deliver a reply to the chat that produced ``reply_token``."""
