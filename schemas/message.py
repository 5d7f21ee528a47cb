from enum import Enum
from typing import Optional

from pydantic import BaseModel

class InboundEvent(BaseModel):
    type: str
    message_type: Optional[str] = None
    reply_token: Optional[str] = None
    text: Optional[str] = None

    @property
    def is_text_message(self) -> bool:
        return self.type == "message" and self.message_type == "text"

class DispatchStatus(str, Enum):
    ignored = "ignored"
    replied = "replied"
    fallback_replied = "fallback_replied"
    reply_failed = "reply_failed"

class DispatchResult(BaseModel):
    reply_token: Optional[str] = None
    status: DispatchStatus
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != DispatchStatus.reply_failed
