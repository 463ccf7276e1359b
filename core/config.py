from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./branches.db"
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    ALGORITHM: str = "HS256"

    LOG_LEVEL: str = "INFO"

    # Length of generated branch keys (never shorter than 20)
    KEY_LENGTH: int = 20
    KEY_GENERATION_ATTEMPTS: int = 5

    # When False, key issuance and child linking skip the manager check
    STRICT_BRANCH_GUARD: bool = True

    ACTIVITY_LOG_LIMIT: int = 20
    ACTIVITY_STATS_DAYS: int = 30
    ACTIVITY_TREND_DAYS: int = 7

    model_config = SettingsConfigDict(env_file=".env")

settings = Settings()
