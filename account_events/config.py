"""Configuration management using environment variables"""
import logging
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Application settings - only what the service needs right now"""

    def __init__(self):
        # Environment
        self.environment = os.getenv("ENVIRONMENT", "development")

        # Server configuration
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", "8000"))

        # Database configuration (SQLite file unless overridden)
        self.database_url = os.getenv(
            "DATABASE_URL",
            "sqlite+aiosqlite:///./account_events.db"
        )

        # Integration events - forwarded to this URL when set, logged otherwise
        self.integration_webhook_url = os.getenv("INTEGRATION_WEBHOOK_URL", "").strip()
        self.integration_webhook_timeout = float(os.getenv("INTEGRATION_WEBHOOK_TIMEOUT", "10.0"))  # seconds
        if self.environment == "production" and self.integration_webhook_url:
            self.integration_webhook_secret = self._get_required("INTEGRATION_WEBHOOK_SECRET")
        else:
            self.integration_webhook_secret = os.getenv("INTEGRATION_WEBHOOK_SECRET", "")
            if self.integration_webhook_url and not self.integration_webhook_secret:
                logging.getLogger(__name__).warning(
                    "⚠️  INTEGRATION_WEBHOOK_URL is set without INTEGRATION_WEBHOOK_SECRET - "
                    "integration events will be signed with an empty secret"
                )

        # Sender address used by the welcome email listener
        self.email_sender = os.getenv("EMAIL_SENDER", "no-reply@example.com")

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    def _get_required(self, key: str) -> str:
        """Get required environment variable or raise error."""
        value = os.getenv(key, "").strip()
        if not value:
            raise ValueError(
                f"Missing required environment variable: {key}. "
                f"Required in production mode."
            )
        return value


# Global settings instance
settings = Settings()
