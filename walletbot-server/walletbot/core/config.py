"""Application configuration using pydantic settings with structured sections."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./walletbot.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class GatewaySettings(BaseModel):
    base_url: str = "https://api.chapa.co/v1"
    secret_key: str = ""
    webhook_secret: Optional[str] = None
    callback_url: str = "http://localhost:8000/webhooks/chapa"
    return_url: str = "https://example.com/"
    currency: str = "ETB"
    merchant_email: str = "payments@example.com"
    merchant_name: str = "Wallet Bot"
    checkout_title: str = "Wallet deposit"
    checkout_description: str = "Top up your wallet balance"
    request_timeout: float = 30.0
    # seconds between withdrawal acceptance and the first verification call
    settle_delay: float = 5.0
    verify_attempts: int = Field(default=1, ge=1)
    verify_interval: float = 5.0


class ConversationSettings(BaseModel):
    collector_timeout: float = 60.0


class LimitSettings(BaseModel):
    deposit_min: Decimal = Decimal("10")
    deposit_max: Decimal = Decimal("1000")
    withdrawal_min: Decimal = Decimal("25")
    withdrawal_max: Decimal = Decimal("1000")
    transfer_min: Decimal = Decimal("10")
    transfer_max: Decimal = Decimal("10000")


class PayoutMethod(BaseModel):
    id: str
    name: str


class AlertSettings(BaseModel):
    webhook_url: Optional[str] = None
    timeout: float = 10.0


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _default_payout_methods() -> list[PayoutMethod]:
    return [
        PayoutMethod(id="855", name="telebirr"),
        PayoutMethod(id="128", name="CBEBirr"),
        PayoutMethod(id="266", name="M-Pesa"),
    ]


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "Wallet Bot"

    database: DatabaseSettings = DatabaseSettings()
    gateway: GatewaySettings = GatewaySettings()
    conversation: ConversationSettings = ConversationSettings()
    limits: LimitSettings = LimitSettings()
    payout_methods: list[PayoutMethod] = Field(default_factory=_default_payout_methods)
    alerts: AlertSettings = AlertSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def currency(self) -> str:
        return self.gateway.currency

    @property
    def collector_timeout(self) -> float:
        return self.conversation.collector_timeout

    def payout_method(self, method_id: str) -> PayoutMethod | None:
        for method in self.payout_methods:
            if method.id == method_id:
                return method
        return None


@lru_cache()
def get_settings() -> Settings:
    return Settings()
