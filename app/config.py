from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    CORS_ALLOWED_ORIGINS: list[str] = ["http://localhost:8081", "http://localhost:19006"]

    # Language model settings
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_MAX_TOKENS: int = 1024
    OPENAI_REPORT_MAX_TOKENS: int = 4096
    OPENAI_TEMPERATURE: float = 0.4
    MODEL_TIMEOUT_SECONDS: float = 60.0
    MODEL_MAX_RETRIES: int = 3

    # HubSpot settings
    HUBSPOT_ACCESS_TOKEN: str | None = None
    HUBSPOT_OWNER_ID: str = "211824246"
    HUBSPOT_PORTAL_ID: str = "4936417"

    # Session store settings
    REDIS_URL: str | None = None
    SESSION_TTL_SECONDS: int = 30 * 60  # 30 minutes, not sliding
    SESSION_SWEEP_INTERVAL_SECONDS: float = 60.0

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def hubspot_enabled(self) -> bool:
        """HubSpot calls are only made when an access token is configured."""
        return bool(self.HUBSPOT_ACCESS_TOKEN)

    def hubspot_deal_url(self, deal_id: str) -> str:
        return f"https://app.hubspot.com/contacts/{self.HUBSPOT_PORTAL_ID}/deal/{deal_id}"

    def session_store_backend(self) -> str:
        """Redis when a connection URL is configured, in-process memory otherwise."""
        return "redis" if self.REDIS_URL else "memory"

    def get_model_config(self) -> dict:
        """
        Get language model call configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "model": self.OPENAI_MODEL,
            "max_tokens": self.OPENAI_MAX_TOKENS,
            "report_max_tokens": self.OPENAI_REPORT_MAX_TOKENS,
            "temperature": self.OPENAI_TEMPERATURE,
            "timeout": self.MODEL_TIMEOUT_SECONDS,
            "max_retries": self.MODEL_MAX_RETRIES,
        }

        if self.environment == "development":
            # Fail fast locally instead of waiting out long retries
            config.update({"max_retries": 1})

        return config


settings = Settings()
