from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from league_engine.models.court import Court
    from league_engine.models.league import League
    from league_engine.models.operating_hours import OperatingHours


class Facility(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    timezone: str = Field(default="")  # IANA name; blank means UTC
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    courts: List["Court"] = Relationship(back_populates="facility")
    operating_hours: List["OperatingHours"] = Relationship(back_populates="facility")
    leagues: List["League"] = Relationship(back_populates="facility")
