"""PAINEL — Central Configuration via Pydantic Settings."""

from datetime import date, datetime
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── App ──
    api_title: str = "PAINEL"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # ── Reporting ──
    reference_date: Optional[str] = None  # YYYY-MM-DD; pins "today" for year inference

    @property
    def effective_today(self) -> date:
        """Return the pinned reference date if set, otherwise today's date."""
        if self.reference_date:
            try:
                return datetime.strptime(self.reference_date, "%Y-%m-%d").date()
            except ValueError:
                pass
        return date.today()

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "PAINEL_",
    }


settings = Settings()
