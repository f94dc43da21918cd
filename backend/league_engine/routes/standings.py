from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel
from sqlmodel import Session

from league_engine.database import get_session
from league_engine.services.errors import LeagueEngineError, http_error_for
from league_engine.services.standings import load_standings, standings_to_csv

router = APIRouter()


class TeamStandingResponse(BaseModel):
    rank: int
    team_id: int
    team_name: str
    matches_played: int
    wins: int
    losses: int
    points_for: int
    points_against: int
    point_differential: int


class StandingsResponse(BaseModel):
    league_id: int
    standings: List[TeamStandingResponse]


@router.get("/leagues/{league_id}/standings", response_model=StandingsResponse)
def get_standings(league_id: int, session: Session = Depends(get_session)):
    try:
        standings = load_standings(session, league_id)
    except LeagueEngineError as exc:
        raise http_error_for(exc)

    return StandingsResponse(
        league_id=league_id,
        standings=[TeamStandingResponse(rank=i, **s.to_dict()) for i, s in enumerate(standings, start=1)],
    )


@router.get("/leagues/{league_id}/standings/export")
def export_standings_csv(league_id: int, session: Session = Depends(get_session)):
    try:
        standings = load_standings(session, league_id)
    except LeagueEngineError as exc:
        raise http_error_for(exc)

    return Response(
        content=standings_to_csv(standings),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="league_{league_id}_standings.csv"'},
    )
