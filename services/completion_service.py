import logging
import httpx

from core.config import Settings
from core.errors import CompletionFailure

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

class CompletionService:
    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.api_key = settings.anthropic_api_key or ""
        self.url = f"{settings.anthropic_base_url.rstrip('/')}/v1/messages"
        self.model = settings.claude_model
        self.max_tokens = settings.claude_max_tokens
        self.system_prompt = settings.claude_system_prompt
        self.client = client

    def build_request(self, user_text: str) -> dict:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": self.system_prompt,
            "messages": [{"role": "user", "content": user_text}],
        }

    async def generate(self, user_text: str) -> str:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        try:
            response = await self.client.post(
                self.url,
                json=self.build_request(user_text),
                headers=headers,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            body = exc.response.text
            request_id = exc.response.headers.get("request-id")
            logger.error(
                "Claude generate request failed with status=%s request_id=%s body=%s",
                exc.response.status_code,
                request_id,
                body[:1000],
            )
            raise CompletionFailure(f"Claude API returned status {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            logger.exception("Claude generate request failed")
            raise CompletionFailure(f"Claude API request failed: {exc}") from exc
        except ValueError as exc:
            logger.exception("Claude generate returned an undecodable body")
            raise CompletionFailure("Claude API returned an undecodable body") from exc

        text = _first_text_block(data)
        if text is None:
            logger.error(
                "Claude generate returned no text block stop_reason=%s",
                data.get("stop_reason") if isinstance(data, dict) else None,
            )
            raise CompletionFailure("Claude API response has no text content")

        logger.info(
            "Claude generate completed",
            extra={
                "model": self.model,
                "output_tokens": (data.get("usage") or {}).get("output_tokens"),
            },
        )
        return text

def _first_text_block(data) -> str | None:
    if not isinstance(data, dict):
        return None
    content = data.get("content")
    if not isinstance(content, list) or not content:
        return None
    block = content[0]
    if not isinstance(block, dict):
        return None
    text = block.get("text")
    if not isinstance(text, str):
        return None
    return text
