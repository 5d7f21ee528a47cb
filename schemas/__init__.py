from .message import (
    InboundEvent,
    DispatchStatus,
    DispatchResult,
)
from .webhook import (
    WebhookResponse,
    HealthCheckResponse,
    ErrorResponse,
)

__all__ = [
    "InboundEvent",
    "DispatchStatus",
    "DispatchResult",
    "WebhookResponse",
    "HealthCheckResponse",
    "ErrorResponse",
]
