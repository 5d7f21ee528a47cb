from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from core.errors import ConfigMissing

DEFAULT_SYSTEM_PROMPT = "คุณคือผู้ช่วย AI ที่เป็นมิตรและตอบคำถามเป็นภาษาไทย"
DEFAULT_FALLBACK_MESSAGE = "ขออภัยครับ เกิดข้อผิดพลาดในการประมวลผล กรุณาลองใหม่อีกครั้ง 🙏"

REQUIRED_SECRETS = ("LINE_CHANNEL_SECRET", "LINE_CHANNEL_ACCESS_TOKEN", "ANTHROPIC_API_KEY")

class Settings(BaseSettings):
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, alias="PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    gcp_project_id: Optional[str] = Field(None, alias="GCP_PROJECT_ID")
    shutdown_timeout_seconds: int = Field(1, alias="SHUTDOWN_TIMEOUT_SECONDS")

    line_channel_secret: Optional[str] = Field(None, alias="LINE_CHANNEL_SECRET")
    line_channel_access_token: Optional[str] = Field(None, alias="LINE_CHANNEL_ACCESS_TOKEN")
    line_api_base_url: str = Field("https://api.line.me", alias="LINE_API_BASE_URL")

    anthropic_api_key: Optional[str] = Field(None, alias="ANTHROPIC_API_KEY")
    anthropic_base_url: str = Field("https://api.anthropic.com", alias="ANTHROPIC_BASE_URL")
    claude_model: str = Field("claude-sonnet-4-20250514", alias="CLAUDE_MODEL")
    claude_max_tokens: int = Field(1000, alias="CLAUDE_MAX_TOKENS")
    claude_system_prompt: str = Field(DEFAULT_SYSTEM_PROMPT, alias="CLAUDE_SYSTEM_PROMPT")

    fallback_message: str = Field(DEFAULT_FALLBACK_MESSAGE, alias="FALLBACK_MESSAGE")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        case_sensitive=True,
        extra="ignore",
    )

    def missing_secrets(self) -> list[str]:
        values = {
            "LINE_CHANNEL_SECRET": self.line_channel_secret,
            "LINE_CHANNEL_ACCESS_TOKEN": self.line_channel_access_token,
            "ANTHROPIC_API_KEY": self.anthropic_api_key,
        }
        return [name for name in REQUIRED_SECRETS if not values[name]]

    def validate_runtime(self) -> None:
        missing = self.missing_secrets()
        if missing:
            raise ConfigMissing(missing)

settings = Settings()
