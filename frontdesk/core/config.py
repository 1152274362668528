import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./frontdesk.db")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:3000"])

# Slot length used when a doctor has no override of their own.
SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "30"))

AVERAGE_SERVICE_MINUTES = float(os.getenv("AVERAGE_SERVICE_MINUTES", "12"))
USE_HISTORICAL_SERVICE_TIME = _get_bool(os.getenv("USE_HISTORICAL_SERVICE_TIME"), default=False)
HISTORICAL_SERVICE_SAMPLE_SIZE = int(os.getenv("HISTORICAL_SERVICE_SAMPLE_SIZE", "20"))

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SLOT_DURATION_MINUTES <= 0:
        raise RuntimeError("SLOT_DURATION_MINUTES must be positive.")
    if AVERAGE_SERVICE_MINUTES < 0:
        raise RuntimeError("AVERAGE_SERVICE_MINUTES cannot be negative.")
