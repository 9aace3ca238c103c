from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for services (structured JSON), False for dev (colored)

    # Validation
    DEFAULT_ERROR_FORMAT: str = "detailed"

    # Resolver
    RESOLVER_MAX_DEPTH: int = 5  # depth cap applied in provider modes when none is given

    class Config:
        env_file = ".env"
        extra = "ignore"
        env_prefix = "SCHEMAFLOW_"


@lru_cache
def get_settings() -> Settings:
    return Settings()
