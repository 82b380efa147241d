from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

from querygate.models import DEFAULT_PORTS, ProductTypeEnum, ServiceEnum


def parse_list(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "querygate"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    SENTRY_DSN: HttpUrl | None = None
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_list)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Routers to mount; each one gets its own pool named after the service.
    SERVICES: Annotated[list[ServiceEnum] | str, BeforeValidator(parse_list)] = [
        s.value for s in ServiceEnum
    ]

    DB_PRODUCT_TYPE: ProductTypeEnum = ProductTypeEnum.POSTGRES
    DB_HOST: str = "localhost"
    DB_PORT: int | None = None
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = "employees"
    # PostgreSQL only: search_path set on every new connection.
    DB_SCHEMA: str | None = "employees"
    DB_CONNECT_TIMEOUT: int = 10

    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_MIN_SIZE: int = 1
    DB_POOL_IDLE_TIMEOUT_SEC: float = 30.0
    DB_POOL_MAX_AGE_SEC: float = 600.0
    # Idle connections older than this are pinged before being handed out.
    DB_POOL_PING_AFTER_IDLE_SEC: float = 30.0
    DB_POOL_ACQUIRE_TIMEOUT_SEC: float = 5.0

    REQUEST_TIMEOUT_SEC: float = 30.0

    HEALTH_PROBE_TIMEOUT_SEC: float = 2.0
    HEALTH_DEGRADED_UTILIZATION: float | None = None
    HEALTH_CHECK_INTERVAL_SEC: float = 0.0

    MAX_CONCURRENT_PER_CLIENT: int = 0
    REDIS_URL: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def db_port(self) -> int:
        return self.DB_PORT or DEFAULT_PORTS[self.DB_PRODUCT_TYPE]

    @model_validator(mode="after")
    def _check_pool_bounds(self) -> Self:
        if self.DB_POOL_MAX_SIZE < 1:
            raise ValueError("DB_POOL_MAX_SIZE must be at least 1")
        if not 0 <= self.DB_POOL_MIN_SIZE <= self.DB_POOL_MAX_SIZE:
            raise ValueError("DB_POOL_MIN_SIZE must be between 0 and DB_POOL_MAX_SIZE")
        if self.HEALTH_PROBE_TIMEOUT_SEC > 2.0:
            raise ValueError("HEALTH_PROBE_TIMEOUT_SEC must not exceed 2 seconds")
        return self


settings = Settings()  # type: ignore
