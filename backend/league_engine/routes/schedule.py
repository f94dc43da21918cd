"""
League schedule endpoints: generate, regenerate, list.

Generation runs through ScheduleCommitter, which owns its own transaction; the
request session is only used to read back the committed schedule.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session

from league_engine import config
from league_engine.database import get_session, new_session
from league_engine.models.league import League
from league_engine.models.match import LeagueMatch
from league_engine.services.errors import LeagueEngineError, http_error_for
from league_engine.services.schedule_committer import ScheduleCommitter, ScheduleOptions, list_league_matches

router = APIRouter()


class ScheduleOptionsRequest(BaseModel):
    preserve_courts: bool = Field(default=False, alias="preserveCourts")
    match_duration_minutes: int = Field(default=config.DEFAULT_MATCH_DURATION_MINUTES, alias="matchDurationMinutes")

    class Config:
        populate_by_name = True

    def to_options(self) -> ScheduleOptions:
        return ScheduleOptions(
            preserve_courts=self.preserve_courts,
            match_duration_minutes=self.match_duration_minutes,
        )


class LeagueMatchResponse(BaseModel):
    id: int
    league_id: int
    round_number: int
    home_team_id: int
    away_team_id: int
    reservation_id: Optional[int] = None
    court_id: Optional[int] = None
    scheduled_time: datetime
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: str


class ScheduleResponse(BaseModel):
    league_id: int
    matches_created: int
    matches: List[LeagueMatchResponse]


class ScheduleListResponse(BaseModel):
    league_id: int
    matches: List[LeagueMatchResponse]


def match_to_response(match: LeagueMatch, court_id: Optional[int] = None) -> LeagueMatchResponse:
    return LeagueMatchResponse(
        id=match.id,
        league_id=match.league_id,
        round_number=match.round_number,
        home_team_id=match.home_team_id,
        away_team_id=match.away_team_id,
        reservation_id=match.reservation_id,
        court_id=court_id,
        scheduled_time=match.scheduled_time,
        home_score=match.home_score,
        away_score=match.away_score,
        status=match.status,
    )


def get_schedule_committer() -> ScheduleCommitter:
    """Committer bound to the application engine (overridden in tests)."""
    return ScheduleCommitter(session_factory=new_session)


def _commit_schedule(
    league_id: int,
    request: Optional[ScheduleOptionsRequest],
    regenerate: bool,
    committer: ScheduleCommitter,
    session: Session,
) -> ScheduleResponse:
    options = (request or ScheduleOptionsRequest()).to_options()
    try:
        if regenerate:
            created = committer.regenerate(league_id, options)
        else:
            created = committer.generate(league_id, options)
    except LeagueEngineError as exc:
        raise http_error_for(exc)

    rows = list_league_matches(session, league_id)
    return ScheduleResponse(
        league_id=league_id,
        matches_created=len(created),
        matches=[match_to_response(m, court_id) for m, court_id in rows],
    )


@router.post("/leagues/{league_id}/schedule/generate", response_model=ScheduleResponse, status_code=201)
def generate_schedule(
    league_id: int,
    request: Optional[ScheduleOptionsRequest] = None,
    committer: ScheduleCommitter = Depends(get_schedule_committer),
    session: Session = Depends(get_session),
):
    """
    Generate the league's round-robin schedule.

    409 if the league already has matches; use regenerate to replace them.
    """
    return _commit_schedule(league_id, request, False, committer, session)


@router.post("/leagues/{league_id}/schedule/regenerate", response_model=ScheduleResponse, status_code=201)
def regenerate_schedule(
    league_id: int,
    request: Optional[ScheduleOptionsRequest] = None,
    committer: ScheduleCommitter = Depends(get_schedule_committer),
    session: Session = Depends(get_session),
):
    """
    Replace the league's schedule in one transaction.

    With preserveCourts, each pairing keeps its previous court when possible.
    """
    return _commit_schedule(league_id, request, True, committer, session)


@router.get("/leagues/{league_id}/schedule", response_model=ScheduleListResponse)
def get_league_schedule(league_id: int, session: Session = Depends(get_session)):
    league = session.get(League, league_id)
    if not league:
        raise HTTPException(status_code=404, detail="League not found")

    rows = list_league_matches(session, league_id)
    return ScheduleListResponse(
        league_id=league_id,
        matches=[match_to_response(m, court_id) for m, court_id in rows],
    )
