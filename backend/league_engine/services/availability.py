"""
Court availability checks against the shared reservation tables.

A court is free for [start, end) when it is active and no reservation linked
to it overlaps the window. ``exclude_reservation_id`` ignores one reservation,
for update-in-place checks.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Set

from sqlmodel import Session, select

from league_engine.models.court import COURT_ACTIVE, Court
from league_engine.models.reservation import Reservation, ReservationCourt
from league_engine.services.errors import CourtUnavailableError


class AvailabilityChecker(Protocol):
    def unavailable_courts(
        self,
        session: Session,
        facility_id: int,
        start_time: datetime,
        end_time: datetime,
        court_ids: Iterable[int],
        exclude_reservation_id: Optional[int] = None,
    ) -> Set[int]:
        """Return the subset of court_ids that cannot be booked for the window."""
        ...


def list_available_courts(
    session: Session,
    facility_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> List[Court]:
    """Active courts of a facility with no overlapping reservation, by court number."""
    busy = (
        select(ReservationCourt.court_id)
        .join(Reservation, Reservation.id == ReservationCourt.reservation_id)
        .where(
            Reservation.facility_id == facility_id,
            Reservation.start_time < end_time,
            Reservation.end_time > start_time,
        )
    )
    if exclude_reservation_id is not None:
        busy = busy.where(Reservation.id != exclude_reservation_id)

    query = (
        select(Court)
        .where(
            Court.facility_id == facility_id,
            Court.status == COURT_ACTIVE,
            Court.id.not_in(busy),
        )
        .order_by(Court.number)
    )
    return list(session.exec(query).all())


class SqlAvailabilityChecker:
    """Default checker reading the reservation tables in the caller's transaction."""

    def unavailable_courts(
        self,
        session: Session,
        facility_id: int,
        start_time: datetime,
        end_time: datetime,
        court_ids: Iterable[int],
        exclude_reservation_id: Optional[int] = None,
    ) -> Set[int]:
        free = {
            c.id for c in list_available_courts(session, facility_id, start_time, end_time, exclude_reservation_id)
        }
        return {court_id for court_id in court_ids if court_id not in free}


def ensure_courts_available(
    checker: AvailabilityChecker,
    session: Session,
    facility_id: int,
    start_time: datetime,
    end_time: datetime,
    court_ids: Iterable[int],
    exclude_reservation_id: Optional[int] = None,
) -> None:
    """Raise CourtUnavailableError naming every requested court that is not free."""
    unavailable = checker.unavailable_courts(
        session, facility_id, start_time, end_time, list(court_ids), exclude_reservation_id
    )
    if unavailable:
        raise CourtUnavailableError(unavailable)
