from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from estpos.schemas.estpos import Account


# Asseco EST endpoints (Akbank virtual POS defaults)
PRODUCTION_API_URL = "https://www.sanalakpos.com/fim/api"
TEST_API_URL = "https://entegrasyon.asseco-see.com.tr/fim/api"
PRODUCTION_GATEWAY_URL = "https://www.sanalakpos.com/fim/est3Dgate"
TEST_GATEWAY_URL = "https://entegrasyon.asseco-see.com.tr/fim/est3Dgate"


class Settings(BaseSettings):
    APP_NAME: str = "EST POS Gateway Adapter"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ── EST POS account ──
    # Environment: "production" or "test"
    ESTPOS_ENVIRONMENT: str = "production"
    # Payment model: "regular", "3d" or "3d_pay"
    ESTPOS_MODEL: str = "regular"
    ESTPOS_USERNAME: str = ""
    ESTPOS_PASSWORD: str = ""
    ESTPOS_CLIENT_ID: str = ""
    ESTPOS_STORE_KEY: str = ""

    # URL overrides
    ESTPOS_API_URL: str = PRODUCTION_API_URL
    ESTPOS_TEST_API_URL: str = TEST_API_URL
    ESTPOS_GATEWAY_URL: str = PRODUCTION_GATEWAY_URL
    ESTPOS_TEST_GATEWAY_URL: str = TEST_GATEWAY_URL

    ESTPOS_HTTP_TIMEOUT: float = 30.0
    ESTPOS_DEFAULT_LANG: str = "tr"
    # Used for 3-D callbacks whose Content-Type declares no charset
    ESTPOS_CALLBACK_CHARSET: str = "utf-8"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def resolve_api_url(self, environment: str | None) -> str:
        """Base API URL for the account environment; production unless "test"."""
        if environment == "test":
            return self.ESTPOS_TEST_API_URL
        return self.ESTPOS_API_URL

    def resolve_gateway_url(self, environment: str | None) -> str:
        """3-D gateway URL for the account environment; production unless "test"."""
        if environment == "test":
            return self.ESTPOS_TEST_GATEWAY_URL
        return self.ESTPOS_GATEWAY_URL

    def build_account(self) -> Account:
        return Account(
            environment=self.ESTPOS_ENVIRONMENT,
            model=self.ESTPOS_MODEL or None,
            username=self.ESTPOS_USERNAME,
            password=self.ESTPOS_PASSWORD,
            client_id=self.ESTPOS_CLIENT_ID,
            store_key=self.ESTPOS_STORE_KEY,
        )

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = ["development", "staging", "production"]
        if v.lower() not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed}")
        return v.lower()

    @field_validator("ESTPOS_ENVIRONMENT")
    @classmethod
    def validate_estpos_environment(cls, v: str) -> str:
        allowed = ["production", "test"]
        if v.lower() not in allowed:
            raise ValueError(f"ESTPOS_ENVIRONMENT must be one of: {allowed}")
        return v.lower()


settings = Settings()
