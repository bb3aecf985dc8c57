"""
Diagram API Configuration
=========================

Loads settings from environment variables.

Environment selection:
- FISHBONE_ENV env var selects the environment (default: development)
- Looks for config/.env.{FISHBONE_ENV} first (e.g., config/.env.development)
- Falls back to root .env if env-specific file not found
- Otherwise relies on OS environment variables (containers, CI)
"""

import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# API is at apps/diagram_portal/api/, project root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent


def _load_env_file():
    """Load the correct .env file based on FISHBONE_ENV.

    Priority:
    1. config/.env.{FISHBONE_ENV} (e.g., config/.env.development)
    2. Root .env
    3. OS environment variables
    """
    env_name = os.getenv("FISHBONE_ENV", "development")

    env_specific = PROJECT_ROOT / "config" / f".env.{env_name}"
    env_root = PROJECT_ROOT / ".env"

    if env_specific.exists():
        load_dotenv(env_specific, override=True)
    elif env_root.exists():
        load_dotenv(env_root, override=True)


# Load environment-specific .env BEFORE Settings class reads os.getenv()
_load_env_file()


def _build_cors_origins() -> List[str]:
    """Build CORS origins list from env var + local dev defaults.

    CORS_ORIGINS env var is a comma-separated string (not JSON).
    """
    env_origins = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "").split(",")
        if o.strip()
    ]
    default_origins = [
        "http://localhost:3000",       # React dev server
        "http://localhost:4200",       # Nx dev server
        "http://localhost:5173",       # Vite dev server
        "http://127.0.0.1:3000",
        "http://127.0.0.1:4200",
        "http://127.0.0.1:5173",
    ]
    # Deduplicate while preserving order
    seen = set()
    result = []
    for origin in env_origins + default_origins:
        if origin not in seen:
            seen.add(origin)
            result.append(origin)
    return result


class Settings(BaseSettings):
    """API Settings from environment"""

    # Environment
    ENV: str = os.getenv("FISHBONE_ENV", "development")
    LOG_LEVEL: str = "INFO"

    # Record stores (JSON files)
    DIAGRAMS_DB_PATH: str = "data/db.json"
    USERS_DB_PATH: str = "data/users.json"

    # JWT Settings
    JWT_SECRET_KEY: str = "CHANGE-THIS-IN-PRODUCTION-use-openssl-rand-hex-32"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Create admin@kla.com / demo@kla.com when the user store is empty
    SEED_DEMO_USERS: bool = True

    # Canvas used when a layout or export request omits a size
    DEFAULT_CANVAS_WIDTH: int = 1200
    DEFAULT_CANVAS_HEIGHT: int = 700

    class Config:
        env_file = ".env"
        extra = "ignore"


# Singleton settings instance
settings = Settings()

# CORS origins built separately so pydantic-settings does not try to
# JSON-parse the comma-separated CORS_ORIGINS env var as a List[str]
CORS_ORIGINS = _build_cors_origins()


def resolve_data_path(path: str) -> Path:
    """Absolute path for a store file; relative paths hang off the project root."""
    db_path = Path(path)
    if db_path.is_absolute():
        return db_path
    return PROJECT_ROOT / db_path


def get_diagrams_db_path() -> Path:
    return resolve_data_path(settings.DIAGRAMS_DB_PATH)


def get_users_db_path() -> Path:
    return resolve_data_path(settings.USERS_DB_PATH)
