from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal
from decimal import Decimal
from zoneinfo import ZoneInfo


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "development"
    DATABASE_URL: str = "sqlite:///./data/pos_pricing.db"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_JSON: bool = False

    # Pricing
    CURRENCY: str = "SAR"
    # Either 0.15 or 15; used when a line has no rate and no active tax exists
    DEFAULT_VAT_RATE: Decimal = Decimal("15")
    BRANCH_TIMEZONE: str = "Asia/Riyadh"

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def branch_tz(self) -> ZoneInfo:
        return ZoneInfo(self.BRANCH_TIMEZONE)


settings = Settings()
