# backend configuration
# loads env vars for mongodb, jwt, calendar window and google oauth

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# load .env from project root
load_dotenv(Path(__file__).parent.parent.parent / ".env")


class Settings(BaseSettings):
    # mongodb (the hosted backend)
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "practice_admin")

    # jwt auth
    JWT_SECRET: str = os.getenv("JWT_SECRET", "practice-admin-dev-secret-change-in-production")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # the single practice administrator
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@practice.local")

    # cors
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # calendar
    TIMEZONE: str = os.getenv("TIMEZONE", "Asia/Jerusalem")
    DEFAULT_SESSION_MINUTES: int = 90
    BOOKING_WINDOW_MONTHS: int = 2
    CALENDAR_FIRST_HOUR: int = 8
    CALENDAR_HOURS: int = 16

    # google calendar oauth (read-only event display)
    GOOGLE_CLIENT_ID: str = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET: str = os.getenv("GOOGLE_CLIENT_SECRET", "")
    GOOGLE_REDIRECT_URI: str = os.getenv("GOOGLE_REDIRECT_URI", "http://localhost:5173/admin/auth/callback")
    GOOGLE_CALENDAR_ID: str = os.getenv("GOOGLE_CALENDAR_ID", "primary")
    GOOGLE_API_TIMEOUT_SECONDS: float = 15.0
    # fernet key for the stored oauth tokens, derived from JWT_SECRET when empty
    TOKEN_ENCRYPTION_KEY: str = os.getenv("TOKEN_ENCRYPTION_KEY", "")

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
