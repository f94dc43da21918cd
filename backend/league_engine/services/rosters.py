"""
Team roster changes guarded by the league's roster lock.

Every operation checks, in order: league exists, roster unlocked, team belongs
to the league, team below max_team_size, membership unique.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from league_engine.models.facility import Facility
from league_engine.models.league import League
from league_engine.models.team import LeagueTeam, TeamMember
from league_engine.services.errors import ConflictError, InternalError, NotFoundError
from league_engine.services.roster_lock import ensure_roster_unlocked
from league_engine.utils.sql import count_rows

logger = logging.getLogger(__name__)


def _load_unlocked_league(session: Session, league_id: int, now: Optional[datetime]) -> League:
    league = session.get(League, league_id)
    if not league:
        raise NotFoundError("League not found")
    facility = session.get(Facility, league.facility_id)
    ensure_roster_unlocked(league, facility, now)
    return league


def _load_league_team(session: Session, league_id: int, team_id: int) -> LeagueTeam:
    team = session.get(LeagueTeam, team_id)
    if not team or team.league_id != league_id:
        raise NotFoundError("Team not found")
    return team


def _ensure_room(session: Session, league: League, team: LeagueTeam) -> None:
    size = count_rows(session, TeamMember, TeamMember.team_id == team.id)
    if size >= league.max_team_size:
        raise ConflictError("Team is at max size")


def _commit_member(session: Session, member: TeamMember, action: str) -> TeamMember:
    try:
        session.add(member)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.info("Duplicate team member user %s on team %s: %s", member.user_id, member.team_id, exc.orig)
        raise ConflictError("Team member already exists") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Database error while trying to %s user %s", action, member.user_id)
        raise InternalError(
            f"Failed to {action} user {member.user_id}: {exc}", public_message=f"Failed to {action}"
        ) from exc
    session.refresh(member)
    return member


def add_team_member(
    session: Session,
    league_id: int,
    team_id: int,
    user_id: int,
    is_free_agent: bool = False,
    now: Optional[datetime] = None,
) -> TeamMember:
    """Add a user to a team. Commits on success."""
    league = _load_unlocked_league(session, league_id, now)
    team = _load_league_team(session, league_id, team_id)
    _ensure_room(session, league, team)

    existing = session.exec(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    ).first()
    if existing:
        raise ConflictError("Team member already exists")

    member = TeamMember(league_id=league_id, team_id=team_id, user_id=user_id, is_free_agent=is_free_agent)
    member = _commit_member(session, member, "add team member")
    logger.info("Added user %s to team %s in league %s", user_id, team_id, league_id)
    return member


def remove_team_member(
    session: Session, league_id: int, team_id: int, user_id: int, now: Optional[datetime] = None
) -> None:
    _load_unlocked_league(session, league_id, now)
    _load_league_team(session, league_id, team_id)

    member = session.exec(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    ).first()
    if not member:
        raise NotFoundError("Team member not found")

    try:
        session.delete(member)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Database error while removing user %s from team %s", user_id, team_id)
        raise InternalError(
            f"Failed to remove user {user_id} from team {team_id}: {exc}", public_message="Failed to remove team member"
        ) from exc
    logger.info("Removed user %s from team %s in league %s", user_id, team_id, league_id)


def assign_free_agent(
    session: Session, league_id: int, user_id: int, team_id: int, now: Optional[datetime] = None
) -> TeamMember:
    """Move an unassigned free agent of the league onto one of its teams."""
    league = _load_unlocked_league(session, league_id, now)
    team = _load_league_team(session, league_id, team_id)
    _ensure_room(session, league, team)

    free_agent = session.exec(
        select(TeamMember).where(
            TeamMember.league_id == league_id,
            TeamMember.user_id == user_id,
            TeamMember.team_id.is_(None),
            TeamMember.is_free_agent == True,  # noqa: E712
        )
    ).first()
    if not free_agent:
        raise NotFoundError("Free agent not found")

    free_agent.team_id = team_id
    member = _commit_member(session, free_agent, "assign free agent")
    logger.info("Assigned free agent %s to team %s in league %s", user_id, team_id, league_id)
    return member


def list_free_agents(session: Session, league_id: int) -> List[TeamMember]:
    """Unassigned free agents of a league, oldest sign-up first."""
    league = session.get(League, league_id)
    if not league:
        raise NotFoundError("League not found")

    return session.exec(
        select(TeamMember)
        .where(
            TeamMember.league_id == league_id,
            TeamMember.team_id.is_(None),
            TeamMember.is_free_agent == True,  # noqa: E712
        )
        .order_by(TeamMember.created_at, TeamMember.id)
    ).all()
