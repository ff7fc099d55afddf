"""
Application settings from environment variables.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "flights"
    db_user: str = "flights_user"
    db_password: str = "flights_pass"
    db_ssl: bool = False

    # Pool
    db_pool_min: int = 1
    db_pool_max: int = 10

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def connection_kwargs(self) -> dict:
        """Keyword arguments for psycopg2.connect / the pool."""
        kwargs = {
            "host": self.db_host,
            "port": self.db_port,
            "dbname": self.db_name,
            "user": self.db_user,
            "password": self.db_password,
        }
        # TLS without certificate verification
        if self.db_ssl:
            kwargs["sslmode"] = "require"
        return kwargs


settings = Settings()
