from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from league_engine.models.league import League

TEAM_ACTIVE = "active"
TEAM_INACTIVE = "inactive"


class LeagueTeam(SQLModel, table=True):
    __tablename__ = "leagueteam"
    __table_args__ = (SAUniqueConstraint("league_id", "name", name="uq_league_team_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    name: str
    captain_user_id: Optional[int] = Field(default=None)
    status: str = Field(default=TEAM_ACTIVE)  # "active" | "inactive"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    league: "League" = Relationship(back_populates="teams")
    members: List["TeamMember"] = Relationship(back_populates="team")


class TeamMember(SQLModel, table=True):
    __tablename__ = "teammember"
    __table_args__ = (SAUniqueConstraint("team_id", "user_id", name="uq_team_member_team_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    # Null while the user is an unassigned free agent in the league
    team_id: Optional[int] = Field(default=None, foreign_key="leagueteam.id", index=True)
    user_id: int
    is_free_agent: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    team: Optional["LeagueTeam"] = Relationship(back_populates="members")
