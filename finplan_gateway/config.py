"""Configuration management using Pydantic Settings"""

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "finplan-gateway"
    log_level: str = "INFO"

    # Invite tokens (override the secret outside development)
    invite_token_secret: SecretStr = SecretStr("dev-invite-secret-change-me")
    invite_token_ttl_days: int = 7

    # Payoff simulation safety cap
    payoff_max_months: int = 600  # 50 years

    @field_validator("invite_token_secret")
    @classmethod
    def secret_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("INVITE_TOKEN_SECRET must not be empty")
        return value


settings = Settings()
