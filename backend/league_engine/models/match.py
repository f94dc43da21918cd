from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from league_engine.models.league import League

MATCH_SCHEDULED = "scheduled"
MATCH_IN_PROGRESS = "in_progress"
MATCH_COMPLETED = "completed"

RECORDABLE_STATUSES = (MATCH_SCHEDULED, MATCH_IN_PROGRESS)


class LeagueMatch(SQLModel, table=True):
    __tablename__ = "leaguematch"
    __table_args__ = (
        CheckConstraint("home_team_id != away_team_id", name="ck_match_distinct_teams"),
        CheckConstraint("(home_score IS NULL) = (away_score IS NULL)", name="ck_match_scores_paired"),
        CheckConstraint("home_score IS NULL OR home_score >= 0", name="ck_match_home_score"),
        CheckConstraint("away_score IS NULL OR away_score >= 0", name="ck_match_away_score"),
        CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed')",
            name="ck_match_status",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    home_team_id: int = Field(foreign_key="leagueteam.id")
    away_team_id: int = Field(foreign_key="leagueteam.id")
    reservation_id: Optional[int] = Field(default=None, foreign_key="reservation.id")
    round_number: int = Field(default=1)
    scheduled_time: datetime
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    status: str = Field(default=MATCH_SCHEDULED)  # "scheduled" | "in_progress" | "completed"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    league: "League" = Relationship(back_populates="matches")
