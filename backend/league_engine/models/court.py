from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from league_engine.models.facility import Facility

COURT_ACTIVE = "active"
COURT_INACTIVE = "inactive"


class Court(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("facility_id", "number", name="uq_court_facility_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    facility_id: int = Field(foreign_key="facility.id", index=True)
    number: int
    name: Optional[str] = None
    status: str = Field(default=COURT_ACTIVE)  # "active" | "inactive"

    # Bumped every time a reservation is linked to this court; the schedule
    # committer claims a court with a compare-and-set on this value.
    # Only writers that bump it are serialized: every other booking workflow
    # must claim the court through claim_court() in the same transaction as its
    # reservation, or the database must run at SERIALIZABLE isolation.
    booking_version: int = Field(default=0)

    facility: "Facility" = Relationship(back_populates="courts")

    @property
    def is_active(self) -> bool:
        return (self.status or "").strip().lower() == COURT_ACTIVE
