"""Solarify settings, read from the environment and an optional .env file.

Field names map to upper-case env vars (SECRET_KEY, DATABASE_BACKEND, ...).
See .env.example for the full list.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DATABASE_BACKENDS = ("firestore", "memory")


class Settings(BaseSettings):
    """Runtime configuration for the API process.

    Only SECRET_KEY is always required. The firestore backend also needs a
    service account, given inline (FIREBASE_SERVICE_ACCOUNT_KEY) or as a file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: str = "solarify"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Auth tokens
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480

    # Storage. "memory" keeps every collection in process (dev and tests).
    database_backend: str = "firestore"
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    # contactMessages live in the Realtime Database; unset means <project_id>-default-rtdb
    firebase_database_url: str | None = None

    # HTTP surface
    allowed_origins: str = "http://localhost:3000,http://localhost:9002"
    max_request_size: int = 5 * 1024 * 1024
    request_timeout_seconds: int = 60
    request_id_header: str = "X-Request-ID"
    correlation_id_header: str = "X-Correlation-ID"
    performance_buffer_size: int = 100

    # Redis response cache for weather and rate lookups (seconds)
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    cache_ttl_weather_current: int = 600
    cache_ttl_weather_forecast: int = 3600
    cache_ttl_weather_tmy: int = 86400
    cache_ttl_utility_rates: int = 86400

    # Tracing
    telemetry_enabled: bool = True
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    # NREL (irradiance, TMY), NOAA (no key), OpenWeather
    nrel_api_key: SecretStr | None = None
    nrel_api_email: str = "api@solarify.app"
    openweather_api_key: SecretStr | None = None
    weather_http_timeout_seconds: float = 30.0
    weather_max_retries: int = 3

    # Checkout
    order_tax_rate: float = 0.0  # percent
    default_currency: str = "USD"

    @property
    def has_firebase_credentials(self) -> bool:
        inline = self.firebase_service_account_key
        return bool(inline and inline.get_secret_value()) or bool(self.firebase_service_account_path)

    @model_validator(mode="after")
    def check_consistency(self) -> "Settings":
        if not self.secret_key.get_secret_value():
            raise ValueError("SECRET_KEY is required (openssl rand -hex 32)")
        if self.database_backend not in DATABASE_BACKENDS:
            raise ValueError(
                f"DATABASE_BACKEND must be one of {', '.join(DATABASE_BACKENDS)}; got {self.database_backend!r}"
            )
        if self.database_backend == "firestore" and not self.has_firebase_credentials:
            raise ValueError(
                "DATABASE_BACKEND=firestore needs FIREBASE_SERVICE_ACCOUNT_KEY (JSON string) "
                "or FIREBASE_SERVICE_ACCOUNT_PATH"
            )
        if not 0 <= self.order_tax_rate <= 100:
            raise ValueError("ORDER_TAX_RATE is a percentage between 0 and 100")
        if not 0.0 <= self.telemetry_sample_rate <= 1.0:
            raise ValueError("TELEMETRY_SAMPLE_RATE must be between 0 and 1")
        return self

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Process-wide Settings, validated on first use.

    Tests that change env vars call get_settings.cache_clear() first.
    """
    return Settings()
