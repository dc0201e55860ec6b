from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    ENV: str = "prod"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str

    JWT_SECRET: str
    JWT_ACCESS_MINUTES: int = 60 * 24

    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT_SECONDS: int = 30
    DB_POOL_RECYCLE_SECONDS: int = 1800

    ALLOWED_HOSTS: str = "localhost,127.0.0.1"
    SECURITY_HEADERS_ENABLED: bool = True

    # Authorization
    SUPERADMIN_ROLE_NAME: str = "superadmin"
    PERMISSION_CACHE_TTL_SECONDS: int = 0  # 0 = resolve on every request
    REDIS_URL: str | None = None  # shared by every worker; unset disables the cache

    # Ownership
    DEFAULT_OWNERSHIP_TYPE: str = "owner"
    DEFAULT_OWNERSHIP_PERCENTAGE: str = "100.00"

settings = Settings()
