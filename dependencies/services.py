import httpx
from fastapi import Request

from adapters.line import LineAdapter
from core.config import Settings
from services.completion_service import CompletionService
from services.dispatch_service import DispatchService

def build_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(30.0, connect=5.0, read=60.0, write=15.0),
    )

def build_services(settings: Settings, client: httpx.AsyncClient) -> dict:
    line_adapter = LineAdapter(settings, client)
    completion_service = CompletionService(settings, client)
    dispatch_service = DispatchService(
        settings=settings,
        completion_service=completion_service,
        reply_adapter=line_adapter,
    )
    return {
        "line_adapter": line_adapter,
        "completion_service": completion_service,
        "dispatch_service": dispatch_service,
    }

def get_line_adapter(request: Request) -> LineAdapter:
    return request.app.state.line_adapter

def get_dispatch_service(request: Request) -> DispatchService:
    return request.app.state.dispatch_service
