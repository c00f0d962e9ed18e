import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    APP_NAME: str = "StayRate"
    # Core settings
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development").lower()
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Tenant scoping
    PROPERTY_TOKEN_HEADER: str = os.getenv("PROPERTY_TOKEN_HEADER", "X-Property-Token")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./stayrate.db")

    # Inventory
    MAX_RANGE_DAYS: int = int(os.getenv("MAX_RANGE_DAYS", "366"))
    HOLD_TTL_MINUTES: int = int(os.getenv("HOLD_TTL_MINUTES", "15"))
    LOCK_TIMEOUT_SECONDS: float = float(os.getenv("LOCK_TIMEOUT_SECONDS", "10"))

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
    RATE_LIMIT_WRITE: str = os.getenv("RATE_LIMIT_WRITE", "30/minute")

settings = Settings()
