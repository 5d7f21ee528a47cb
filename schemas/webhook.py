from pydantic import BaseModel


class WebhookResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str


class HealthCheckResponse(BaseModel):
    message: str
