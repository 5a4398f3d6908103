from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Publisphere Jobs"
    app_env: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "publisphere"
    postgres_user: str = "publisphere"
    postgres_password: str = "publisphere"

    redis_host: str = "localhost"
    redis_port: int = 6379

    database_url: str | None = None
    redis_url: str | None = None
    redis_socket_timeout_seconds: float = 2.0
    worker_heartbeat_key: str = "worker:heartbeat"
    worker_heartbeat_ttl_seconds: int = 45
    processor_last_run_key: str = "jobs:processor:last_run"

    cron_secret: str | None = None
    encryption_secret: str | None = None

    job_batch_limit: int = 10
    job_default_max_attempts: int = 3
    job_retry_base_minutes: int = 1
    job_process_interval_seconds: float = 60.0

    wordpress_timeout_seconds: float = 30.0
    image_fetch_timeout_seconds: float = 15.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def sqlalchemy_database_uri(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def cache_redis_url(self) -> str:
        if self.redis_url:
            return self.redis_url
        return f"redis://{self.redis_host}:{self.redis_port}/0"


settings = Settings()
