from datetime import time
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from league_engine.models.facility import Facility


class OperatingHours(SQLModel, table=True):
    __tablename__ = "operatinghours"
    __table_args__ = (SAUniqueConstraint("facility_id", "day_of_week", name="uq_hours_facility_day"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    facility_id: int = Field(foreign_key="facility.id", index=True)
    day_of_week: int  # 0=Sunday .. 6=Saturday
    opens_at: Optional[time] = Field(default=None)
    closes_at: Optional[time] = Field(default=None)

    facility: "Facility" = Relationship(back_populates="operating_hours")
