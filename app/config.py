from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    app_name: str = "user-service"
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8080

    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "user_service"
    db_password: str = "user_service_dev"
    db_name: str = "user_service"
    # Full SQLAlchemy URL; takes precedence over the DB_* parts when set.
    database_url: str = ""

    db_pool_size: int = 20
    db_max_overflow: int = 10
    # Create missing tables at start-up. Production deployments run alembic instead.
    db_auto_migrate: bool = False

    # bcrypt work factor, 4..31
    bcrypt_rounds: int = 12

    secret_key: str = "change-me-to-a-random-secret-key"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    api_prefix: str = "/api/v1"
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)


settings = Settings()
