from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="OP_", extra="ignore")

    app_name: str = "Order Pricing Engine"
    env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    default_currency: str = Field(default="CAD", description="ISO 4217 code reported alongside totals")

    # Discount analytics
    analytics_top_limit: int = Field(default=10, ge=1, le=100)
    max_batch_orders: int = Field(default=5000, description="0 disables the limit (dev only)")

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return
        if self.max_batch_orders <= 0:
            raise ValueError("unbounded analytics batches are not allowed outside dev mode; set OP_MAX_BATCH_ORDERS")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
