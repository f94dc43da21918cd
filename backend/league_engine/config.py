"""
Runtime settings for the league engine.

Everything is read from the environment (a local .env file is honoured) so the
same build runs against SQLite in development and PostgreSQL in production.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./leagues.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Reservation type used for every booking created by the schedule committer
LEAGUE_RESERVATION_TYPE = os.getenv("LEAGUE_RESERVATION_TYPE", "LEAGUE")

DEFAULT_MATCH_DURATION_MINUTES = _int_env("DEFAULT_MATCH_DURATION_MINUTES", 60)

# Wall-clock budget for one generate/regenerate transaction
SCHEDULE_TIMEOUT_SECONDS = _int_env("SCHEDULE_TIMEOUT_SECONDS", 30)

# Hard cap on (day, slot) candidates the slot walk may consider
MAX_SLOT_CANDIDATES = _int_env("MAX_SLOT_CANDIDATES", 50000)

CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    CORS_ORIGINS.extend(o.strip() for o in _extra.split(",") if o.strip())
