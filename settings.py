"""Application settings read from environment variables."""
import logging
import os

from pydantic import BaseModel


class Settings(BaseModel):
    app_name: str = "expense-control"
    app_version: str = "0.1.0"
    database_url: str = "sqlite:///./expense_control.db"
    sql_echo: bool = False
    api_prefix: str = "/api"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]
    db_connect_retries: int = 10
    db_retry_delay: float = 2.0  # seconds

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment, falling back to defaults."""
        defaults = cls()
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            app_name=os.getenv("APP_NAME", defaults.app_name),
            app_version=os.getenv("APP_VERSION", defaults.app_version),
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            sql_echo=os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes"),
            api_prefix=os.getenv("API_PREFIX", defaults.api_prefix),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins
                else defaults.cors_origins
            ),
            db_connect_retries=int(
                os.getenv("DB_CONNECT_RETRIES", defaults.db_connect_retries)
            ),
            db_retry_delay=float(os.getenv("DB_RETRY_DELAY", defaults.db_retry_delay)),
        )


def configure_logging(level: str) -> None:
    """Set the root log format once; later calls only adjust the level."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level.upper())
