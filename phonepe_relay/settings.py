from decimal import Decimal
from functools import lru_cache
from typing import List

from pydantic import BaseModel, ConfigDict, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ServerConfigurationError

PHONEPE_PRODUCTION_URL = "https://api.phonepe.com/apis/hermes"
PHONEPE_SANDBOX_URL = "https://api-preprod.phonepe.com/apis/pg-sandbox"


class GatewayConfig(BaseModel):
    """Read-only view of everything the adapter needs to sign and call PhonePe."""

    model_config = ConfigDict(frozen=True)

    merchant_id: str
    salt_key: SecretStr
    salt_index: int
    callback_base_url: str
    base_url: str
    timeout_sec: float = 15


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "PhonePeRelay"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000
    CORS_ORIGINS: List[str] = ["*"]

    # Merchant credentials issued by PhonePe
    MERCHANT_ID: str | None = None
    SALT_KEY: SecretStr | None = None
    SALT_INDEX: int | None = None

    # Public URL of this service, PhonePe redirects/calls back to {CALLBACK_BASE_URL}/callback/{id}
    CALLBACK_BASE_URL: str | None = None

    # "production" selects the live host; PHONEPE_BASE_URL overrides both
    PHONEPE_ENV: str = "test"
    PHONEPE_BASE_URL: str | None = None

    HTTP_TIMEOUT_SEC: float = 15
    MAX_AMOUNT: Decimal = Decimal("100000")
    CALLBACK_VERIFY_STATUS: bool = False

    @property
    def is_production(self) -> bool:
        return self.PHONEPE_ENV.strip().lower() in {"prod", "production", "live"}

    @property
    def gateway_base_url(self) -> str:
        if self.PHONEPE_BASE_URL:
            return self.PHONEPE_BASE_URL.rstrip("/")
        return PHONEPE_PRODUCTION_URL if self.is_production else PHONEPE_SANDBOX_URL

    def presence(self) -> dict:
        # Only booleans, never the values themselves
        return {
            "merchantId": bool(self.MERCHANT_ID),
            "saltKey": bool(self.SALT_KEY and self.SALT_KEY.get_secret_value()),
            "saltIndex": self.SALT_INDEX is not None,
            "callbackBaseUrl": bool(self.CALLBACK_BASE_URL),
        }

    def gateway_config(self) -> GatewayConfig:
        missing = [
            env_name
            for env_name, present in zip(
                ("MERCHANT_ID", "SALT_KEY", "SALT_INDEX", "CALLBACK_BASE_URL"),
                self.presence().values(),
            )
            if not present
        ]
        if missing:
            raise ServerConfigurationError(
                "Server configuration error",
                details={"missing": missing},
            )
        return GatewayConfig(
            merchant_id=self.MERCHANT_ID,
            salt_key=self.SALT_KEY,
            salt_index=self.SALT_INDEX,
            callback_base_url=self.CALLBACK_BASE_URL.rstrip("/"),
            base_url=self.gateway_base_url,
            timeout_sec=self.HTTP_TIMEOUT_SEC,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
