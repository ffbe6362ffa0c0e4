from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Block Connect"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    api_host: str = "localhost"
    api_port: int = 8000

    database_host: str = "localhost"
    database_port: int = 5432
    database_user: str = "postgres"
    database_password: str = ""
    database_name: str = "block_connect"
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10

    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"
    session_token_expire_seconds: int = 3600
    app_token_expire_seconds: int = 900

    platform_base_url: str = "http://localhost:3000"
    provider_health_timeout_seconds: float = 10.0

    install_retry_attempts: int = 3
    registry_default_page_size: int = 20
    registry_max_page_size: int = 100

    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
