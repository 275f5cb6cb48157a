# answerly/config.py
import os
from dotenv import load_dotenv

# .env im Projekt-Root bevorzugen, sonst Suche ab dem aktuellen Verzeichnis
dotenv_path = os.path.join(os.path.dirname(__file__), "..", ".env")
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)
else:
    load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    sqlite_db_path = os.path.join(os.path.dirname(__file__), "answerly.db")
    DATABASE_URL = f"sqlite+aiosqlite:///{sqlite_db_path}"

SQL_ECHO = _env_flag("SQL_ECHO")
AUTO_CREATE_TABLES = _env_flag("AUTO_CREATE_TABLES")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

APP_SECRET = os.getenv("APP_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
TOKEN_TTL_MINUTES = int(os.getenv("TOKEN_TTL_MINUTES", "120"))

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "secret")

FALLBACK_ORIGINS = [
    "http://127.0.0.1:5173",
    "http://localhost:5173",
]
_env_origins = os.getenv("BACKEND_ALLOWED_ORIGINS")
ALLOWED_ORIGINS = (
    [origin.strip() for origin in _env_origins.split(",") if origin.strip()]
    if _env_origins
    else []
) or FALLBACK_ORIGINS

SLUG_LENGTH = int(os.getenv("SLUG_LENGTH", "10"))
SLUG_MAX_ATTEMPTS = int(os.getenv("SLUG_MAX_ATTEMPTS", "5"))
DEFAULT_TIME_LIMIT_SECONDS = int(os.getenv("DEFAULT_TIME_LIMIT_SECONDS", "60"))
