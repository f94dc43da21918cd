"""Roster lock timing and roster changes guarded by it."""
from datetime import date, datetime, timedelta

import pytest
import pytz
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from league_engine.models.team import TeamMember
from league_engine.services.errors import ConflictError, InternalError, NotFoundError, RosterLockedError
from league_engine.services.roster_lock import is_roster_locked, is_roster_locked_at, roster_lock_timezone
from league_engine.services.rosters import add_team_member, assign_free_agent, list_free_agents, remove_team_member

LOCK_DATE = date(2024, 5, 10)


def utc(*args):
    return datetime(*args, tzinfo=pytz.UTC)


def test_lock_behind_utc():
    tz = pytz.FixedOffset(-7 * 60)
    assert not is_roster_locked_at(LOCK_DATE, tz, utc(2024, 5, 10, 6, 59))
    assert is_roster_locked_at(LOCK_DATE, tz, utc(2024, 5, 10, 7, 0))


def test_lock_ahead_of_utc():
    tz = pytz.FixedOffset(9 * 60)
    assert not is_roster_locked_at(LOCK_DATE, tz, utc(2024, 5, 9, 14, 59))
    assert is_roster_locked_at(LOCK_DATE, tz, utc(2024, 5, 9, 15, 0))


def test_lock_named_zone_observes_dst():
    tz = roster_lock_timezone("America/Los_Angeles")
    assert not is_roster_locked_at(LOCK_DATE, tz, utc(2024, 5, 10, 6, 59))
    assert is_roster_locked_at(LOCK_DATE, tz, utc(2024, 5, 10, 7, 0))


def test_no_lock_date_never_locks():
    assert not is_roster_locked_at(None, pytz.UTC, utc(2099, 1, 1))


def test_naive_now_treated_as_utc():
    assert is_roster_locked_at(LOCK_DATE, pytz.UTC, datetime(2024, 5, 10, 0, 0))
    assert not is_roster_locked_at(LOCK_DATE, pytz.UTC, datetime(2024, 5, 9, 23, 59))


@pytest.mark.parametrize("name", ["", "   ", None, "Mars/Olympus_Mons"])
def test_blank_or_unknown_timezone_falls_back_to_utc(name):
    assert roster_lock_timezone(name) is pytz.UTC


def test_is_roster_locked_uses_facility_timezone(league_factory):
    data = league_factory(timezone="Asia/Tokyo", roster_lock_date=LOCK_DATE)
    league, facility = data["league"], data["facility"]

    assert not is_roster_locked(league, facility, utc(2024, 5, 9, 14, 59))
    assert is_roster_locked(league, facility, utc(2024, 5, 9, 15, 0))


# ============================================================================
# Roster operations
# ============================================================================

BEFORE_LOCK = utc(2024, 5, 1, 12, 0)
AFTER_LOCK = utc(2024, 5, 20, 12, 0)


@pytest.fixture
def roster_league(league_factory):
    return league_factory(team_count=2, roster_lock_date=LOCK_DATE, max_team_size=2)


def test_add_member_before_lock(session: Session, roster_league):
    lid, tid = roster_league["league"].id, roster_league["teams"][0].id

    member = add_team_member(session, lid, tid, user_id=7, now=BEFORE_LOCK)

    assert member.id is not None
    assert member.team_id == tid
    assert member.league_id == lid


def test_add_member_after_lock_rejected(session: Session, roster_league):
    lid, tid = roster_league["league"].id, roster_league["teams"][0].id

    with pytest.raises(RosterLockedError, match="Roster is locked for this league"):
        add_team_member(session, lid, tid, user_id=7, now=AFTER_LOCK)

    assert session.exec(select(TeamMember)).all() == []


def test_add_member_max_size(session: Session, roster_league):
    lid, tid = roster_league["league"].id, roster_league["teams"][0].id
    add_team_member(session, lid, tid, user_id=1, now=BEFORE_LOCK)
    add_team_member(session, lid, tid, user_id=2, now=BEFORE_LOCK)

    with pytest.raises(ConflictError, match="Team is at max size"):
        add_team_member(session, lid, tid, user_id=3, now=BEFORE_LOCK)


def test_add_member_duplicate(session: Session, roster_league):
    lid, tid = roster_league["league"].id, roster_league["teams"][0].id
    add_team_member(session, lid, tid, user_id=1, now=BEFORE_LOCK)

    with pytest.raises(ConflictError, match="Team member already exists"):
        add_team_member(session, lid, tid, user_id=1, now=BEFORE_LOCK)


def test_add_member_team_from_other_league(session: Session, roster_league, league_factory):
    other = league_factory(team_count=2)

    with pytest.raises(NotFoundError, match="Team not found"):
        add_team_member(session, roster_league["league"].id, other["teams"][0].id, user_id=1, now=BEFORE_LOCK)


def test_remove_member(session: Session, roster_league):
    lid, tid = roster_league["league"].id, roster_league["teams"][0].id
    add_team_member(session, lid, tid, user_id=1, now=BEFORE_LOCK)

    remove_team_member(session, lid, tid, user_id=1, now=BEFORE_LOCK)

    assert session.exec(select(TeamMember)).all() == []
    with pytest.raises(NotFoundError, match="Team member not found"):
        remove_team_member(session, lid, tid, user_id=1, now=BEFORE_LOCK)


def test_remove_member_after_lock_rejected(session: Session, roster_league):
    lid, tid = roster_league["league"].id, roster_league["teams"][0].id
    add_team_member(session, lid, tid, user_id=1, now=BEFORE_LOCK)

    with pytest.raises(RosterLockedError):
        remove_team_member(session, lid, tid, user_id=1, now=AFTER_LOCK)


def test_assign_free_agent(session: Session, roster_league):
    lid, tid = roster_league["league"].id, roster_league["teams"][1].id
    session.add(TeamMember(league_id=lid, team_id=None, user_id=50, is_free_agent=True))
    session.commit()

    member = assign_free_agent(session, lid, user_id=50, team_id=tid, now=BEFORE_LOCK)

    assert member.team_id == tid
    with pytest.raises(NotFoundError, match="Free agent not found"):
        assign_free_agent(session, lid, user_id=50, team_id=tid, now=BEFORE_LOCK)


def test_assign_free_agent_after_lock_rejected(session: Session, roster_league):
    lid, tid = roster_league["league"].id, roster_league["teams"][1].id
    session.add(TeamMember(league_id=lid, team_id=None, user_id=50, is_free_agent=True))
    session.commit()

    with pytest.raises(RosterLockedError):
        assign_free_agent(session, lid, user_id=50, team_id=tid, now=AFTER_LOCK)


def test_list_free_agents_skips_assigned_and_other_leagues(session: Session, roster_league, league_factory):
    lid, tid = roster_league["league"].id, roster_league["teams"][0].id
    other = league_factory(team_count=2)
    session.add(TeamMember(league_id=lid, team_id=None, user_id=30, is_free_agent=True))
    session.add(TeamMember(league_id=lid, team_id=None, user_id=31, is_free_agent=True))
    session.add(TeamMember(league_id=lid, team_id=tid, user_id=32, is_free_agent=True))
    session.add(TeamMember(league_id=other["league"].id, team_id=None, user_id=33, is_free_agent=True))
    session.commit()

    assert [m.user_id for m in list_free_agents(session, lid)] == [30, 31]

    assign_free_agent(session, lid, user_id=30, team_id=tid, now=BEFORE_LOCK)
    assert [m.user_id for m in list_free_agents(session, lid)] == [31]


def test_list_free_agents_unknown_league(session: Session):
    with pytest.raises(NotFoundError, match="League not found"):
        list_free_agents(session, 9999)


def _failing_commit():
    raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


def test_add_member_database_failure(session: Session, roster_league, monkeypatch):
    lid, tid = roster_league["league"].id, roster_league["teams"][0].id
    monkeypatch.setattr(session, "commit", _failing_commit)

    with pytest.raises(InternalError) as exc_info:
        add_team_member(session, lid, tid, user_id=7, now=BEFORE_LOCK)

    assert exc_info.value.public_message == "Failed to add team member"
    monkeypatch.undo()
    assert session.exec(select(TeamMember)).all() == []


def test_remove_member_database_failure(session: Session, roster_league, monkeypatch):
    lid, tid = roster_league["league"].id, roster_league["teams"][0].id
    add_team_member(session, lid, tid, user_id=1, now=BEFORE_LOCK)
    monkeypatch.setattr(session, "commit", _failing_commit)

    with pytest.raises(InternalError) as exc_info:
        remove_team_member(session, lid, tid, user_id=1, now=BEFORE_LOCK)

    assert exc_info.value.public_message == "Failed to remove team member"
    monkeypatch.undo()
    assert [m.user_id for m in session.exec(select(TeamMember)).all()] == [1]


def test_assign_free_agent_database_failure(session: Session, roster_league, monkeypatch):
    lid, tid = roster_league["league"].id, roster_league["teams"][1].id
    session.add(TeamMember(league_id=lid, team_id=None, user_id=50, is_free_agent=True))
    session.commit()
    monkeypatch.setattr(session, "commit", _failing_commit)

    with pytest.raises(InternalError) as exc_info:
        assign_free_agent(session, lid, user_id=50, team_id=tid, now=BEFORE_LOCK)

    assert exc_info.value.public_message == "Failed to assign free agent"
    monkeypatch.undo()
    assert [m.user_id for m in list_free_agents(session, lid)] == [50]

# ============================================================================
# HTTP (wall clock)
# ============================================================================


def test_post_member_locked_league(client: TestClient, league_factory):
    data = league_factory(roster_lock_date=date.today() - timedelta(days=2))
    lid, tid = data["league"].id, data["teams"][0].id

    resp = client.post(f"/api/leagues/{lid}/teams/{tid}/members", json={"userId": 9})

    assert resp.status_code == 409
    assert resp.json()["detail"] == "Roster is locked for this league"


def test_post_and_delete_member_open_league(client: TestClient, league_factory):
    data = league_factory(roster_lock_date=date.today() + timedelta(days=30))
    lid, tid = data["league"].id, data["teams"][0].id

    resp = client.post(f"/api/leagues/{lid}/teams/{tid}/members", json={"user_id": 9, "is_free_agent": False})
    assert resp.status_code == 201
    assert resp.json()["user_id"] == 9

    resp = client.delete(f"/api/leagues/{lid}/teams/{tid}/members/9")
    assert resp.status_code == 200
    assert resp.json() == {"removed": 9}


def test_assign_free_agent_endpoint(client: TestClient, session: Session, league_factory):
    data = league_factory()
    lid, tid = data["league"].id, data["teams"][0].id
    session.add(TeamMember(league_id=lid, team_id=None, user_id=12, is_free_agent=True))
    session.commit()

    resp = client.post(f"/api/leagues/{lid}/free-agents/12/assign", json={"teamId": tid})

    assert resp.status_code == 200
    assert resp.json()["team_id"] == tid


def test_post_member_invalid_user(client: TestClient, league_factory):
    data = league_factory()
    resp = client.post(f"/api/leagues/{data['league'].id}/teams/{data['teams'][0].id}/members", json={"userId": 0})
    assert resp.status_code == 422


def test_get_free_agents_endpoint(client: TestClient, session: Session, league_factory):
    data = league_factory()
    lid = data["league"].id
    session.add(TeamMember(league_id=lid, team_id=None, user_id=12, is_free_agent=True))
    session.commit()

    resp = client.get(f"/api/leagues/{lid}/free-agents")

    assert resp.status_code == 200
    body = resp.json()
    assert body["league_id"] == lid
    assert [fa["user_id"] for fa in body["free_agents"]] == [12]
    assert body["free_agents"][0]["team_id"] is None


def test_get_free_agents_unknown_league(client: TestClient):
    resp = client.get("/api/leagues/9999/free-agents")
    assert resp.status_code == 404
