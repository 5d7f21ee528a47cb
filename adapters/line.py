import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Any

import httpx

from adapters.base import BaseAdapter
from core.config import Settings
from core.errors import DispatchSetupFailure, PayloadUnreadable, ReplyFailure, SignatureInvalid
from schemas.message import InboundEvent

SIGNATURE_HEADER = "X-Line-Signature"

logger = logging.getLogger(__name__)

class LineAdapter(BaseAdapter):

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.channel_secret = settings.line_channel_secret or ""
        self.channel_access_token = settings.line_channel_access_token or ""
        self.reply_url = f"{settings.line_api_base_url.rstrip('/')}/v2/bot/message/reply"
        self.client = client

    def verify_signature(self, signature: str | None, body: bytes) -> None:
        if not signature:
            raise SignatureInvalid("no signature")

        digest = hmac.new(self.channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
        expected = base64.b64encode(digest).decode("utf-8")
        if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
            logger.info("LINE signature mismatch", extra={"signature": signature[:128]})
            raise SignatureInvalid("signature validation failed")

    def load_payload(self, body: bytes) -> Any:
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PayloadUnreadable(f"invalid JSON payload: {exc}") from exc

    def parse_events(self, payload: Any) -> list[InboundEvent]:
        if not isinstance(payload, dict):
            raise DispatchSetupFailure("LINE webhook payload must be a JSON object")

        raw_events = payload.get("events") or []
        if not isinstance(raw_events, list):
            raise DispatchSetupFailure("LINE webhook 'events' must be a list")

        events = []
        for index, raw in enumerate(raw_events):
            try:
                events.append(self._parse_event(raw))
            except ValueError as exc:
                # a broken event is skipped on its own, its siblings still get replies
                logger.warning(
                    "LINE webhook event malformed, ignoring it",
                    extra={"event_index": index, "reason": str(exc)[:500]},
                )
                events.append(InboundEvent(type=""))
        return events

    def _parse_event(self, raw: Any) -> InboundEvent:
        if not isinstance(raw, dict):
            raise ValueError("LINE webhook event must be a JSON object")
        message = raw.get("message") or {}
        if not isinstance(message, dict):
            raise ValueError("LINE webhook event 'message' must be a JSON object")
        return InboundEvent(
            type=str(raw.get("type") or ""),
            message_type=message.get("type"),
            reply_token=raw.get("replyToken"),
            text=message.get("text"),
        )

    async def send_reply(self, reply_token: str, reply_text: str) -> None:
        payload = {
            "replyToken": reply_token,
            "messages": [{"type": "text", "text": reply_text}],
        }
        headers = {"Authorization": f"Bearer {self.channel_access_token}"}
        start = time.perf_counter()
        try:
            response = await self.client.post(self.reply_url, json=payload, headers=headers)
            elapsed = time.perf_counter() - start
            logger.info(
                "LINE send_reply completed",
                extra={
                    "status_code": response.status_code,
                    "elapsed_s": round(elapsed, 3),
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "LINE send_reply rejected with status=%s body=%s",
                exc.response.status_code,
                exc.response.text[:1000],
            )
            raise ReplyFailure(f"LINE reply rejected with status {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            elapsed = time.perf_counter() - start
            logger.exception(
                "LINE send_reply failed",
                extra={"elapsed_s": round(elapsed, 3)},
            )
            raise ReplyFailure(f"LINE reply request failed: {exc}") from exc
