import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings


# Find .env even in frozen or packaged mode
POSSIBLE_ENV_PATHS = [
    Path(__file__).resolve().parent.parent / ".env",        # source checkout
    Path(sys.executable).resolve().parent / ".env",         # frozen exe
    Path.cwd() / ".env",                                    # runtime cwd
]

for env_path in POSSIBLE_ENV_PATHS:
    if env_path.exists():
        load_dotenv(env_path, override=False)
        break


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./souqote.db"

    # JWT
    SECRET_KEY: str = "supersecretkey_change_this"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Needed to self-register an admin account
    ADMIN_SECRET: str = "change_this_admin_secret"

    # Storage
    UPLOAD_DIR: str = "uploads"
    PUBLIC_FILES_PREFIX: str = "/files"
    MAX_UPLOAD_MB: int = 10

    # Locale
    TIMEZONE: str = "Asia/Dubai"
    DEFAULT_CURRENCY: str = "AED"

    # Logging
    LOG_FILE: str = "souqote.log"
    LOG_LEVEL: str = "DEBUG"

    CORS_ORIGINS: list[str] = ["*"]

    class Config:
        env_file = ".env"


settings = Settings()
