from __future__ import annotations

import base64
import hashlib
import hmac
import json
from typing import Any

from adapters.base import BaseAdapter
from core.config import Settings
from core.errors import CompletionFailure, ReplyFailure

CHANNEL_SECRET = "test-channel-secret"
FALLBACK = "fallback apology"


def make_settings(**overrides: Any) -> Settings:
    values = {
        "LINE_CHANNEL_SECRET": CHANNEL_SECRET,
        "LINE_CHANNEL_ACCESS_TOKEN": "test-access-token",
        "ANTHROPIC_API_KEY": "test-anthropic-key",
        "LINE_API_BASE_URL": "https://line.test",
        "ANTHROPIC_BASE_URL": "https://anthropic.test",
        "FALLBACK_MESSAGE": FALLBACK,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sign(body: bytes, secret: str = CHANNEL_SECRET) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def text_event(text: str, reply_token: str) -> dict[str, Any]:
    return {
        "type": "message",
        "replyToken": reply_token,
        "source": {"type": "user", "userId": "U123"},
        "message": {"id": "1", "type": "text", "text": text},
    }


def encode(payload: Any) -> bytes:
    return json.dumps(payload).encode("utf-8")


class FakeCompletion:
    """Echoes the user text in upper case, or fails for texts listed in ``failing``."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[str] = []

    async def generate(self, user_text: str) -> str:
        self.calls.append(user_text)
        if user_text in self.failing:
            raise CompletionFailure(f"boom for {user_text}")
        return user_text.upper()


class FakeReplyAdapter(BaseAdapter):
    def __init__(self, failing_tokens: set[str] | None = None) -> None:
        self.failing_tokens = failing_tokens or set()
        self.replies: list[tuple[str, str]] = []

    def verify_signature(self, signature: str | None, body: bytes) -> None:
        return None

    def load_payload(self, body: bytes) -> Any:
        return json.loads(body)

    def parse_events(self, payload: Any) -> list:
        return []

    async def send_reply(self, reply_token: str, reply_text: str) -> None:
        if reply_token in self.failing_tokens:
            raise ReplyFailure(f"token {reply_token} expired")
        self.replies.append((reply_token, reply_text))
