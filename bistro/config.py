# bistro/config.py

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./bistro.db"
    redis_url: Optional[str] = None

    # Pricing
    tax_rate: float = 0.0875

    # Capacity: one capacity unit = one table of this many seats
    seats_per_table: int = 4

    # Checkout time picker
    order_lead_minutes: int = 20
    order_slot_minutes: int = 15
    order_horizon_days: int = 7

    # Rate limits (requests per window)
    reservation_rate_limit: int = 10
    order_rate_limit: int = 10
    rate_limit_window_ms: int = 60_000
    rate_limit_bypass_loopback: bool = False
    # Set only when a reverse proxy overwrites X-Real-IP
    trust_proxy_headers: bool = False

    # Resend
    resend_api_key: Optional[str] = None
    resend_from_email: str = "reservations@bistro.local"
    resend_reply_to: Optional[str] = None
    resend_api_url: str = "https://api.resend.com/emails"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
