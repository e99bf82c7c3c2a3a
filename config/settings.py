from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_DB_DRIVERS = ("mysql", "postgres")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment: local | dev | staging | prod
    ENV: str = "local"
    PORT: int = 8080

    # App
    APP_NAME: str = "spindle API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False  # Echoes SQL when True

    # Database (defaults target a local MySQL)
    DB_DRIVER: str = "mysql"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "user"
    DB_PASS: str = "password"
    DB_NAME: str = "fiber_gorm_starter"
    DB_SSL_MODE: str = "disable"
    DB_MAX_OPEN: int = 25
    DB_MAX_IDLE: int = 10
    DB_MAX_LIFETIME: int = 300  # seconds
    # Full SQLAlchemy URL; overrides the DB_* fields above when set
    DATABASE_URL: str = ""

    # Security: empty disables API key auth
    API_KEY: str = ""
    # Comma-separated origins allowed in prod (every origin is allowed elsewhere)
    CORS_ALLOW_ORIGINS: str = ""

    # Observability
    LOG_LEVEL: str = "info"
    METRICS_ENABLED: bool = True

    @field_validator("DB_MAX_LIFETIME", mode="before")
    @classmethod
    def parse_duration(cls, v: object) -> object:
        """Accept Go-style durations such as "300s" or "5m" as well as plain seconds."""
        if isinstance(v, str):
            raw = v.strip().lower()
            if raw.endswith("m"):
                return int(raw[:-1]) * 60
            if raw.endswith("s"):
                return int(raw[:-1])
        return v

    @property
    def is_dev(self) -> bool:
        return self.ENV in ("dev", "local")

    @property
    def is_prod(self) -> bool:
        return self.ENV == "prod"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]

    @property
    def database_url(self) -> str:
        """Build the async SQLAlchemy URL for the configured driver."""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        user = quote_plus(self.DB_USER)
        password = quote_plus(self.DB_PASS)
        location = f"{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

        if self.DB_DRIVER == "postgres":
            url = f"postgresql+asyncpg://{user}:{password}@{location}"
            if self.DB_SSL_MODE != "disable":
                url += f"?ssl={self.DB_SSL_MODE}"
            return url
        if self.DB_DRIVER == "mysql":
            return f"mysql+aiomysql://{user}:{password}@{location}?charset=utf8mb4"
        raise ValueError(f"unsupported database driver: {self.DB_DRIVER}")


settings = Settings()


def get_settings() -> Settings:
    return settings
