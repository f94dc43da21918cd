import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import date, time  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine, select  # noqa: E402

from league_engine.database import get_session  # noqa: E402
from league_engine.main import app  # noqa: E402
from league_engine.routes.schedule import get_schedule_committer  # noqa: E402
from league_engine.services.schedule_committer import ScheduleCommitter  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models imported before create_all() (see session_fixture)
# 4. App dependencies overridden to use test_engine (see client_fixture)
# 5. Tables dropped after every test so unique names can be reused
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


def open_test_session() -> Session:
    return Session(test_engine)




@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    # Import all models to ensure they're registered BEFORE create_all
    from league_engine.models import (  # noqa: F401
        Court,
        Facility,
        League,
        LeagueMatch,
        LeagueTeam,
        OperatingHours,
        Reservation,
        ReservationCourt,
        ReservationParticipant,
        ReservationType,
        TeamMember,
    )

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="session_factory")
def session_factory_fixture(session: Session):
    """Factory for extra sessions on the test engine (tables already created)"""
    return open_test_session


@pytest.fixture(name="committer")
def committer_fixture(session: Session) -> ScheduleCommitter:
    """Schedule committer opening its own sessions on the test engine"""
    return ScheduleCommitter(session_factory=open_test_session)


@pytest.fixture(name="client")
def client_fixture(session: Session, committer: ScheduleCommitter):
    """Provide a test client with overridden database session and committer

    Overrides MUST be set BEFORE TestClient() and stay in place for the
    entire duration, so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_schedule_committer] = lambda: committer

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="league_factory")
def league_factory_fixture(session: Session):
    """
    Build a facility + league ready for scheduling.

    Returns a callable; every facility day is open 09:00-17:00 unless
    ``hours`` is given as {day_of_week: (opens_at, closes_at)} with 0 = Sunday.
    """
    from league_engine.models import Court, Facility, League, LeagueTeam, OperatingHours, ReservationType

    def _make(
        team_count: int = 4,
        court_count: int = 2,
        start_date: date = date(2026, 3, 2),
        end_date: date = date(2026, 3, 2),
        hours=None,
        timezone: str = "",
        roster_lock_date=None,
        league_format: str = "doubles",
        max_team_size: int = 2,
        with_reservation_type: bool = True,
    ):
        facility = Facility(name="Riverside Pickleball", timezone=timezone)
        session.add(facility)
        session.commit()
        session.refresh(facility)

        courts = []
        for number in range(1, court_count + 1):
            court = Court(facility_id=facility.id, number=number)
            session.add(court)
            courts.append(court)

        if hours is None:
            hours = {day: (time(9, 0), time(17, 0)) for day in range(7)}
        for day, (opens_at, closes_at) in hours.items():
            session.add(OperatingHours(facility_id=facility.id, day_of_week=day, opens_at=opens_at, closes_at=closes_at))

        if with_reservation_type and session.exec(
            select(ReservationType).where(ReservationType.name == "LEAGUE")
        ).first() is None:
            session.add(ReservationType(name="LEAGUE"))

        league = League(
            facility_id=facility.id,
            name="Spring Ladder",
            format=league_format,
            start_date=start_date,
            end_date=end_date,
            min_team_size=1,
            max_team_size=max_team_size,
            roster_lock_date=roster_lock_date,
        )
        session.add(league)
        session.commit()
        session.refresh(league)

        teams = []
        for i in range(team_count):
            team = LeagueTeam(league_id=league.id, name=f"Team {chr(ord('A') + i)}")
            session.add(team)
            teams.append(team)
        session.commit()
        for obj in courts + teams:
            session.refresh(obj)

        return {"facility": facility, "league": league, "courts": courts, "teams": teams}

    return _make
