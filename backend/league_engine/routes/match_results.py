"""
Match result recording. Scores only; the schedule itself is never mutated here.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from league_engine.database import get_session
from league_engine.routes.schedule import LeagueMatchResponse, match_to_response
from league_engine.services.errors import LeagueEngineError, http_error_for
from league_engine.services.match_results import record_match_result

router = APIRouter()


class MatchResultRequest(BaseModel):
    home_score: Optional[int] = Field(default=None, alias="homeScore")
    away_score: Optional[int] = Field(default=None, alias="awayScore")

    class Config:
        populate_by_name = True


@router.put("/leagues/{league_id}/matches/{match_id}/result", response_model=LeagueMatchResponse)
def put_match_result(
    league_id: int,
    match_id: int,
    request: MatchResultRequest,
    session: Session = Depends(get_session),
):
    """
    Record the final score and complete the match.

    Rules: no ties, winner leads by 2, winning score at least 11.
    Only scheduled or in-progress matches accept a result (409 otherwise).
    """
    try:
        match = record_match_result(session, league_id, match_id, request.home_score, request.away_score)
    except LeagueEngineError as exc:
        raise http_error_for(exc)
    return match_to_response(match)
