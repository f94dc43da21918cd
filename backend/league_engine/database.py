from pathlib import Path
from typing import Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from league_engine import config

DATABASE_URL = config.DATABASE_URL

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=config.SQL_ECHO,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def new_session() -> Session:
    """Open a standalone session on the application engine (caller closes it)."""
    return Session(engine)


def init_db(bind: Engine = None) -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from league_engine.models.court import Court  # noqa: F401
    from league_engine.models.facility import Facility  # noqa: F401
    from league_engine.models.league import League  # noqa: F401
    from league_engine.models.match import LeagueMatch  # noqa: F401
    from league_engine.models.operating_hours import OperatingHours  # noqa: F401
    from league_engine.models.reservation import (  # noqa: F401
        Reservation,
        ReservationCourt,
        ReservationParticipant,
        ReservationType,
    )
    from league_engine.models.team import LeagueTeam, TeamMember  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
