from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, CheckConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from league_engine.models.facility import Facility
    from league_engine.models.match import LeagueMatch
    from league_engine.models.team import LeagueTeam

LEAGUE_FORMATS = ("singles", "doubles", "mixed_doubles")
LEAGUE_STATUSES = ("draft", "registration", "active", "completed", "cancelled")


def _in_list(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class League(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_league_date_range"),
        CheckConstraint("min_team_size <= max_team_size", name="ck_league_team_size"),
        CheckConstraint(_in_list("format", LEAGUE_FORMATS), name="ck_league_format"),
        CheckConstraint(_in_list("status", LEAGUE_STATUSES), name="ck_league_status"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    facility_id: int = Field(foreign_key="facility.id", index=True)
    name: str
    format: str = Field(default="doubles")  # "singles" | "doubles" | "mixed_doubles"
    start_date: date
    end_date: date
    division_config: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    min_team_size: int = Field(default=1)
    max_team_size: int = Field(default=2)
    roster_lock_date: Optional[date] = Field(default=None)
    status: str = Field(default="draft")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    facility: "Facility" = Relationship(back_populates="leagues")
    teams: List["LeagueTeam"] = Relationship(back_populates="league")
    matches: List["LeagueMatch"] = Relationship(back_populates="league")

    def people_per_team(self) -> int:
        """Reservation head-count per side for this league's format."""
        fmt = (self.format or "").strip().lower()
        if fmt == "singles":
            return 1
        return 2
