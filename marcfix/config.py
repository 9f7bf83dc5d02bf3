from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from marcfix.constants import BATCH_SLEEP_SECONDS, DEFAULT_CHUNK_SIZE
from marcfix.services.validation import ConfigError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    catalog_api_url: str = Field(default="", alias="VALIDATE_API")
    catalog_user: str = Field(default="", alias="VALIDATE_USER")
    catalog_password: str = Field(default="", alias="VALIDATE_PASS")
    catalog_timeout_seconds: int = Field(default=30, alias="CATALOG_TIMEOUT_SECONDS")

    database_url: str = Field(default="sqlite+pysqlite:///./marcfix_backup.db", alias="DATABASE_URL")
    operator_id: str = Field(default="marcfix", alias="OPERATOR_ID")

    validators: str = Field(default="", alias="VALIDATORS")
    default_chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, alias="CHUNK_SIZE")
    batch_sleep_seconds: int = Field(default=BATCH_SLEEP_SECONDS, alias="BATCH_SLEEP_SECONDS")

    output_dir: Path = Field(default=Path("./files"), alias="OUTPUT_DIR")
    log_file: Path | None = Field(default=Path("logfile.log"), alias="LOG_FILE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("log_file", mode="before")
    @classmethod
    def blank_log_file_disables_file_logging(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def validate_required_runtime(self) -> "Settings":
        if not self.database_url.strip():
            raise ValueError("DATABASE_URL is required")
        if not self.operator_id.strip():
            raise ValueError("OPERATOR_ID must not be blank")
        if self.catalog_timeout_seconds < 1:
            raise ValueError("CATALOG_TIMEOUT_SECONDS must be >= 1")
        if self.default_chunk_size < 1:
            raise ValueError("CHUNK_SIZE must be >= 1")
        if self.batch_sleep_seconds < 0:
            raise ValueError("BATCH_SLEEP_SECONDS must be >= 0")
        return self

    @property
    def validator_names(self) -> list[str]:
        return [name.strip() for name in self.validators.split(",") if name.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def require_catalog_api(settings: Settings) -> None:
    if not settings.catalog_api_url.strip():
        raise ConfigError("The environment variable VALIDATE_API is not set.")


def require_credentials(settings: Settings) -> None:
    require_catalog_api(settings)
    if not settings.catalog_user.strip() or not settings.catalog_password.strip():
        raise ConfigError("Environment variable(s) VALIDATE_USER and/or VALIDATE_PASS are not set.")
