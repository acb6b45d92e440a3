from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BRAND_NAME: str = "Finpath"
    SECURE_URL: str = "https://advisors.example.com/complete"
    BUSINESS_TIMEZONE: str = "Asia/Kolkata"

    # ISO weekday numbers, Monday=1 ... Sunday=7
    WORKING_DAYS: list[int] = [1, 2, 3, 4, 5, 6]
    WORKING_HOUR_START: int = 10
    WORKING_HOUR_END: int = 18
    SLOT_DURATION_MINUTES: int = 30
    MAX_OFFERED_SLOTS: int = 2
    DATETIME_CONFIDENCE_THRESHOLD: float = 0.5

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL_CLASSIFY: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE_CLASSIFY: float = 0.0
    LLM_RATE_LIMIT_PER_MINUTE: int = 30

    TOOL_GATEWAY_URL: str | None = None
    TOOL_GATEWAY_API_KEY: str | None = None
    TOOL_CALL_TIMEOUT_SECONDS: float = 10.0

    STORE_PROVIDER: str = "memory"
    DATA_DIR: str = "./data"


settings = Settings()
