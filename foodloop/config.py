"""
Configuration management for FoodLoop
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "FoodLoop"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = ""  # empty: DEBUG when DEBUG is on, else INFO

    # Database
    DATABASE_URL: str = "sqlite:///./foodloop.db"
    TRANSACTION_TIMEOUT_SECONDS: int = 5

    # Identity provider (Firebase Authentication)
    FIREBASE_CREDENTIALS_PATH: str = ""  # service account JSON
    FIREBASE_PROJECT_ID: str = ""

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Listings & fan-out
    NOTIFY_RADIUS_KM: float = 10.0
    DEFAULT_SEARCH_RADIUS_KM: float = 10.0
    DEFAULT_EXPIRY_HOURS: float = 2.0

    # New users without coordinates land here (Bangalore city centre)
    DEFAULT_LATITUDE: float = 12.9716
    DEFAULT_LONGITUDE: float = 77.5946

    # Impact metrics
    CO2_PER_MEAL_KG: float = 0.42
    DAILY_ANALYTICS_LIMIT: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
