"""
Calendar booking tables shared with the rest of the facility platform.

The league engine only creates and deletes rows here; every other booking
workflow (lessons, open play, member reservations) lives outside this service
but competes for the same courts through these tables.

Those workflows must bump Court.booking_version (schedule_committer.claim_court)
when they link a reservation to a court. A writer that skips it can race the
schedule committer's check-then-insert unless the deployment runs at
SERIALIZABLE isolation.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class ReservationType(SQLModel, table=True):
    __tablename__ = "reservationtype"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)


class Reservation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    facility_id: int = Field(foreign_key="facility.id", index=True)
    reservation_type_id: int = Field(foreign_key="reservationtype.id")
    start_time: datetime = Field(index=True)
    end_time: datetime = Field(index=True)
    created_by_user_id: Optional[int] = Field(default=None)
    is_open_event: bool = Field(default=False)
    teams_per_court: Optional[int] = Field(default=None)
    people_per_team: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ReservationCourt(SQLModel, table=True):
    __tablename__ = "reservationcourt"
    __table_args__ = (SAUniqueConstraint("reservation_id", "court_id", name="uq_reservation_court"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    reservation_id: int = Field(foreign_key="reservation.id", index=True)
    court_id: int = Field(foreign_key="court.id", index=True)


class ReservationParticipant(SQLModel, table=True):
    __tablename__ = "reservationparticipant"
    __table_args__ = (SAUniqueConstraint("reservation_id", "user_id", name="uq_reservation_participant"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    reservation_id: int = Field(foreign_key="reservation.id", index=True)
    user_id: int
