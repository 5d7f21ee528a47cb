import logging
import sys
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from core.config import Settings, settings
from core.logging import setup_logging, parse_trace_header, set_trace_context, clear_trace_context
from dependencies.services import build_http_client, build_services
from schemas.webhook import HealthCheckResponse
from endpoints.webhook import router as webhook_router

setup_logging(settings.log_level, settings.gcp_project_id)

logger = logging.getLogger(__name__)
http_logger = logging.getLogger("http.request")

def create_app(app_settings: Settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        app_settings.validate_runtime()
        client = build_http_client()
        app.state.http_client = client
        for name, service in build_services(app_settings, client).items():
            setattr(app.state, name, service)
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(lifespan=lifespan)
    app.state.settings = app_settings

    app.include_router(webhook_router)

    @app.middleware("http")
    async def trace_context_middleware(request: Request, call_next):
        set_trace_context(*parse_trace_header(request.headers.get("X-Cloud-Trace-Context")))
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration = time.perf_counter() - start
            http_request = {
                "requestMethod": request.method,
                "requestUrl": str(request.url),
                "status": response.status_code if response is not None else 500,
                "userAgent": request.headers.get("user-agent"),
                "remoteIp": request.client.host if request.client else None,
                "protocol": f"HTTP/{request.scope.get('http_version', '1.1')}",
                "latency": f"{duration:.6f}s",
            }
            request_size = request.headers.get("content-length")
            if request_size:
                http_request["requestSize"] = request_size
            if response is not None and response.headers.get("content-length"):
                http_request["responseSize"] = response.headers["content-length"]
            http_logger.info("HTTP request", extra={"httpRequest": http_request})
            clear_trace_context()

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "LINE Bot is running!"

    @app.get("/healthz", response_model=HealthCheckResponse)
    def healthz():
        return HealthCheckResponse(message="LINE relay running")

    return app

app = create_app(settings)

def main() -> None:
    missing = settings.missing_secrets()
    if missing:
        print("Missing required environment variables:", file=sys.stderr)
        for name in missing:
            print(f"   - {name}", file=sys.stderr)
        print("\nSet them in the deployment environment or in a local .env file.", file=sys.stderr)
        sys.exit(1)

    logger.info(
        "Server is starting",
        extra={"host": settings.host, "port": settings.port, "webhook_path": "/webhook"},
    )
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
    )

if __name__ == "__main__":
    main()
