import asyncio
import logging
from collections import Counter
from typing import Iterable

from adapters.base import BaseAdapter
from core.config import Settings
from schemas.message import DispatchResult, DispatchStatus, InboundEvent
from services.completion_service import CompletionService

class DispatchService:
    """Turns one LINE event into at most one Claude call and exactly one reply.

    Every failure is reported through the returned ``DispatchResult``; ``handle``
    never raises, so one event can not take down its siblings in a batch.
    """

    def __init__(
        self,
        settings: Settings,
        completion_service: CompletionService,
        reply_adapter: BaseAdapter,
    ):
        self.completion_service = completion_service
        self.reply_adapter = reply_adapter
        self.fallback_message = settings.fallback_message
        self.logger = logging.getLogger(__name__)

    async def handle(self, event: InboundEvent) -> DispatchResult:
        if not event.is_text_message:
            self.logger.debug(
                "Ignored unsupported event",
                extra={"event_type": event.type, "message_type": event.message_type},
            )
            return DispatchResult(reply_token=event.reply_token, status=DispatchStatus.ignored)

        reply_token = event.reply_token or ""
        user_text = event.text or ""
        self.logger.info(
            "DispatchService received text message",
            extra={"text_length": len(user_text)},
        )

        status = DispatchStatus.replied
        try:
            reply_text = await self.completion_service.generate(user_text)
        except Exception:
            self.logger.exception("Claude completion failed, sending fallback message")
            reply_text = self.fallback_message
            status = DispatchStatus.fallback_replied

        try:
            await self.reply_adapter.send_reply(reply_token, reply_text)
        except Exception as exc:
            self.logger.exception(
                "Reply delivery failed",
                extra={"fallback": status == DispatchStatus.fallback_replied},
            )
            return DispatchResult(
                reply_token=event.reply_token,
                status=DispatchStatus.reply_failed,
                error=str(exc) or exc.__class__.__name__,
            )

        return DispatchResult(reply_token=event.reply_token, status=status)

    async def dispatch_batch(self, events: Iterable[InboundEvent]) -> list[DispatchResult]:
        events = list(events)
        outcomes = await asyncio.gather(
            *(self.handle(event) for event in events),
            return_exceptions=True,
        )

        results = []
        for event, outcome in zip(events, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                self.logger.error(
                    "Event dispatch raised unexpectedly",
                    exc_info=(type(outcome), outcome, outcome.__traceback__),
                )
                outcome = DispatchResult(
                    reply_token=event.reply_token,
                    status=DispatchStatus.reply_failed,
                    error=str(outcome) or outcome.__class__.__name__,
                )
            results.append(outcome)

        counts = Counter(result.status.value for result in results)
        self.logger.info(
            "Dispatched webhook batch",
            extra={"event_count": len(results), "statuses": dict(counts)},
        )
        return results
