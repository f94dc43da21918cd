"""
Roster endpoints. All changes are rejected with 409 once the league's roster
lock date has been reached in the facility's timezone.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from league_engine.database import get_session
from league_engine.services.errors import LeagueEngineError, http_error_for
from league_engine.services.rosters import add_team_member, assign_free_agent, list_free_agents, remove_team_member

router = APIRouter()


class TeamMemberRequest(BaseModel):
    user_id: int = Field(alias="userId", gt=0)
    is_free_agent: bool = Field(default=False, alias="isFreeAgent")

    class Config:
        populate_by_name = True


class AssignFreeAgentRequest(BaseModel):
    team_id: int = Field(alias="teamId", gt=0)

    class Config:
        populate_by_name = True


class TeamMemberResponse(BaseModel):
    id: int
    league_id: int
    team_id: Optional[int] = None
    user_id: int
    is_free_agent: bool
    created_at: datetime

    class Config:
        from_attributes = True


class FreeAgentListResponse(BaseModel):
    league_id: int
    free_agents: List[TeamMemberResponse]


@router.post("/leagues/{league_id}/teams/{team_id}/members", response_model=TeamMemberResponse, status_code=201)
def post_team_member(
    league_id: int,
    team_id: int,
    request: TeamMemberRequest,
    session: Session = Depends(get_session),
):
    try:
        member = add_team_member(session, league_id, team_id, request.user_id, request.is_free_agent)
    except LeagueEngineError as exc:
        raise http_error_for(exc)
    return member


@router.delete("/leagues/{league_id}/teams/{team_id}/members/{user_id}")
def delete_team_member(league_id: int, team_id: int, user_id: int, session: Session = Depends(get_session)):
    try:
        remove_team_member(session, league_id, team_id, user_id)
    except LeagueEngineError as exc:
        raise http_error_for(exc)
    return {"removed": user_id}


@router.get("/leagues/{league_id}/free-agents", response_model=FreeAgentListResponse)
def get_free_agents(league_id: int, session: Session = Depends(get_session)):
    """Free agents of the league not yet placed on a team."""
    try:
        free_agents = list_free_agents(session, league_id)
    except LeagueEngineError as exc:
        raise http_error_for(exc)
    return FreeAgentListResponse(
        league_id=league_id,
        free_agents=[TeamMemberResponse.model_validate(m) for m in free_agents],
    )

@router.post("/leagues/{league_id}/free-agents/{user_id}/assign", response_model=TeamMemberResponse)
def post_assign_free_agent(
    league_id: int,
    user_id: int,
    request: AssignFreeAgentRequest,
    session: Session = Depends(get_session),
):
    try:
        member = assign_free_agent(session, league_id, user_id, request.team_id)
    except LeagueEngineError as exc:
        raise http_error_for(exc)
    return member
