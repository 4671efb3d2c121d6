"""Application configuration using pydantic-settings."""

from typing import Any

from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from services.credential_manager import CREDENTIAL_KEYS, get_credential


class KeychainSettingsSource(PydanticBaseSettingsSource):
    """Load credential fields from the OS keychain via ``keyring``.

    Only fields whose uppercase name appears in
    :data:`~services.credential_manager.CREDENTIAL_KEYS` are looked up.
    All other fields return ``None`` so the next source in the chain
    handles them.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        env_name = field_name.upper()
        if env_name not in CREDENTIAL_KEYS:
            return None, field_name, False
        value = get_credential(env_name)
        return value, field_name, False

    def __call__(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        for field_name, field_info in self.settings_cls.model_fields.items():
            value, key, is_complex = self.get_field_value(field_info, field_name)
            if value is not None:
                d[key] = value
        return d


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            KeychainSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    # Database
    DATABASE_URL: str = "sqlite:///./ledger.db"

    # Plaid credentials (client id and secret can also live in the keychain)
    PLAID_CLIENT_ID: str = ""
    PLAID_SECRET: str = ""
    PLAID_ENVIRONMENT: str = "sandbox"
    PLAID_PRODUCTS: str = "transactions"  # comma-separated
    PLAID_COUNTRY_CODES: str = "US"  # comma-separated
    PLAID_REDIRECT_URI: str = ""
    PLAID_CLIENT_NAME: str = "Compound"

    # Transaction sync
    SYNC_PAGE_SIZE: int = 100
    SYNC_MAX_CONSECUTIVE_FAILURES: int = 3

    # CORS origins for the web client, comma-separated
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3001"

    @field_validator("PLAID_ENVIRONMENT", mode="before")
    @classmethod
    def normalize_plaid_environment(cls, v: str) -> str:
        """Lowercase PLAID_ENVIRONMENT; the Plaid client validates the value."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("SYNC_PAGE_SIZE")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Plaid accepts between 1 and 500 records per /transactions/sync call."""
        if not 1 <= v <= 500:
            raise ValueError(f"SYNC_PAGE_SIZE must be between 1 and 500, got {v}")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    @property
    def plaid_products(self) -> list[str]:
        return _split_csv(self.PLAID_PRODUCTS)

    @property
    def plaid_country_codes(self) -> list[str]:
        return [code.upper() for code in _split_csv(self.PLAID_COUNTRY_CODES)]

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.CORS_ORIGINS)


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


settings = Settings()
