"""
Schedule Committer - atomic generate / regenerate for a league

Steps (one transaction, all-or-nothing):
0. Validate league, roster, courts, hours and the LEAGUE reservation type
1. Capture prior court per pairing (regenerate + preserve_courts)
2. Delete the prior schedule (regenerate): matches, then their reservations,
   reservation participants and reservation courts
3. Generate the round-robin schedule (pure)
4. Reconcile preferred courts (optional)
5. Per match: re-check court availability, claim the court through its
   booking_version, create reservation + court link + match row
6. Commit, then notify listeners

Any error rolls back the transaction; callers see either the complete new
schedule or the untouched prior one.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from league_engine import config
from league_engine.models.court import COURT_ACTIVE, Court
from league_engine.models.league import League
from league_engine.models.match import MATCH_SCHEDULED, LeagueMatch
from league_engine.models.operating_hours import OperatingHours
from league_engine.models.reservation import Reservation, ReservationCourt, ReservationParticipant, ReservationType
from league_engine.models.team import TEAM_ACTIVE, LeagueTeam
from league_engine.services.availability import AvailabilityChecker, SqlAvailabilityChecker, ensure_courts_available
from league_engine.services.court_preferences import apply_preferred_courts, build_preferred_court_map
from league_engine.services.errors import (
    CourtUnavailableError,
    InternalError,
    LeagueEngineError,
    NotFoundError,
    ScheduleExistsError,
    ScheduleGenerationError,
    ScheduleTimeoutError,
    ValidationError,
)
from league_engine.services.schedule_generator import generate_round_robin_schedule

logger = logging.getLogger(__name__)

TEAMS_PER_COURT = 2

ScheduleListener = Callable[[int, List[LeagueMatch]], None]


@dataclass
class ScheduleOptions:
    preserve_courts: bool = False
    match_duration_minutes: int = config.DEFAULT_MATCH_DURATION_MINUTES

    def validate(self) -> None:
        minutes = self.match_duration_minutes
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
            raise ValidationError("Match duration must be a positive number of minutes")


def log_calendar_refresh(league_id: int, matches: List[LeagueMatch]) -> None:
    """Default listener: calendar views pick up the new bookings on refresh."""
    logger.info("Calendar refresh requested: league %s now has %d scheduled matches", league_id, len(matches))


# ============================================================================
# Schedule queries
# ============================================================================


def list_league_matches(session: Session, league_id: int) -> List[Tuple[LeagueMatch, Optional[int]]]:
    """
    Matches of a league with the court their reservation holds.

    Ordered by scheduled_time, then match id. Court is None for matches without
    a reservation or without a linked court.
    """
    matches = session.exec(
        select(LeagueMatch)
        .where(LeagueMatch.league_id == league_id)
        .order_by(LeagueMatch.scheduled_time, LeagueMatch.id)
    ).all()

    reservation_ids = [m.reservation_id for m in matches if m.reservation_id is not None]
    court_by_reservation: Dict[int, int] = {}
    if reservation_ids:
        links = session.exec(
            select(ReservationCourt)
            .where(ReservationCourt.reservation_id.in_(reservation_ids))
            .order_by(ReservationCourt.reservation_id, ReservationCourt.court_id)
        ).all()
        for link in links:
            court_by_reservation.setdefault(link.reservation_id, link.court_id)

    return [(m, court_by_reservation.get(m.reservation_id)) for m in matches]


def delete_league_schedule(session: Session, matches: Sequence[LeagueMatch]) -> int:
    """Delete matches and everything booked for them, child records first.

    Deletes in order: LeagueMatches → ReservationParticipants → ReservationCourts → Reservations
    Returns the number of matches removed. Flushes but never commits.
    """
    reservation_ids = sorted({m.reservation_id for m in matches if m.reservation_id is not None})

    for match in matches:
        session.delete(match)
    session.flush()

    if reservation_ids:
        participants = session.exec(
            select(ReservationParticipant).where(ReservationParticipant.reservation_id.in_(reservation_ids))
        ).all()
        for participant in participants:
            session.delete(participant)

        links = session.exec(
            select(ReservationCourt).where(ReservationCourt.reservation_id.in_(reservation_ids))
        ).all()
        for link in links:
            session.delete(link)
        session.flush()

        reservations = session.exec(select(Reservation).where(Reservation.id.in_(reservation_ids))).all()
        for reservation in reservations:
            session.delete(reservation)
        session.flush()

    return len(matches)


def claim_court(session: Session, court_id: int, expected_version: int) -> int:
    """
    Compare-and-set the court's booking_version.

    Fails with CourtUnavailableError when another transaction has booked the
    court since expected_version was read. Returns the new version.
    """
    result = session.connection().execute(
        update(Court)
        .where(Court.id == court_id, Court.booking_version == expected_version)
        .values(booking_version=expected_version + 1)
    )
    if result.rowcount != 1:
        raise CourtUnavailableError([court_id])
    return expected_version + 1


# ============================================================================
# Committer
# ============================================================================


class ScheduleCommitter:
    """
    Generates and persists league schedules.

    The session factory is the only route to the database; every call opens
    its own session and transaction.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        availability_checker: Optional[AvailabilityChecker] = None,
        listeners: Optional[Iterable[ScheduleListener]] = None,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_factory = session_factory
        self.availability_checker = availability_checker or SqlAvailabilityChecker()
        self.listeners: List[ScheduleListener] = list(listeners) if listeners is not None else [log_calendar_refresh]
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else config.SCHEDULE_TIMEOUT_SECONDS
        self.clock = clock

    def generate(self, league_id: int, options: Optional[ScheduleOptions] = None) -> List[LeagueMatch]:
        """Create the league's first schedule. Conflict if one already exists."""
        return self._run(league_id, options or ScheduleOptions(), regenerate=False)

    def regenerate(self, league_id: int, options: Optional[ScheduleOptions] = None) -> List[LeagueMatch]:
        """Replace the league's schedule (if any) with a freshly generated one."""
        return self._run(league_id, options or ScheduleOptions(), regenerate=True)

    def _run(self, league_id: int, options: ScheduleOptions, regenerate: bool) -> List[LeagueMatch]:
        options.validate()
        deadline = self.clock() + self.timeout_seconds
        action = "regenerate" if regenerate else "generate"

        with self.session_factory() as session:
            try:
                created = self._build(session, league_id, options, regenerate, deadline)
                session.commit()
            except LeagueEngineError as exc:
                session.rollback()
                logger.warning("Failed to %s schedule for league %s: %s", action, league_id, exc)
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Database error while trying to %s schedule for league %s", action, league_id)
                raise InternalError(
                    f"Failed to {action} schedule for league {league_id}: {exc}",
                    public_message="Failed to generate schedule",
                ) from exc

            for match in created:
                session.refresh(match)

        logger.info("Committed %d matches for league %s (%s)", len(created), league_id, action)
        self._notify(league_id, created)
        return created

    def _build(
        self,
        session: Session,
        league_id: int,
        options: ScheduleOptions,
        regenerate: bool,
        deadline: float,
    ) -> List[LeagueMatch]:
        # ====================================================================
        # Step 0: Validate
        # ====================================================================
        league = session.get(League, league_id)
        if not league:
            raise NotFoundError("League not found")
        if league.end_date < league.start_date:
            raise ValidationError("League start date must be on or before end date")

        existing = session.exec(
            select(LeagueMatch)
            .where(LeagueMatch.league_id == league_id)
            .order_by(LeagueMatch.scheduled_time, LeagueMatch.id)
        ).all()
        if existing and not regenerate:
            raise ScheduleExistsError("Schedule already exists for this league")

        teams = session.exec(
            select(LeagueTeam)
            .where(LeagueTeam.league_id == league_id, LeagueTeam.status == TEAM_ACTIVE)
            .order_by(LeagueTeam.id)
        ).all()
        if len(teams) < 2:
            raise ScheduleGenerationError("At least two active teams are required")

        courts = session.exec(
            select(Court)
            .where(Court.facility_id == league.facility_id, Court.status == COURT_ACTIVE)
            .order_by(Court.number, Court.id)
        ).all()
        if not courts:
            raise ScheduleGenerationError("No active courts available for scheduling")

        hours = session.exec(
            select(OperatingHours)
            .where(OperatingHours.facility_id == league.facility_id)
            .order_by(OperatingHours.day_of_week)
        ).all()

        reservation_type = session.exec(
            select(ReservationType).where(ReservationType.name == config.LEAGUE_RESERVATION_TYPE)
        ).first()
        if not reservation_type:
            raise NotFoundError("Reservation type not found")

        # ====================================================================
        # Step 1-2: Capture preferences, clear prior schedule
        # ====================================================================
        preferred: Dict = {}
        if regenerate and existing:
            if options.preserve_courts:
                rows = list_league_matches(session, league_id)
                preferred = build_preferred_court_map(
                    (m.home_team_id, m.away_team_id, court_id) for m, court_id in rows
                )
            removed = delete_league_schedule(session, existing)
            logger.info("Cleared %d existing matches for league %s", removed, league_id)

        # ====================================================================
        # Step 3-4: Generate, reconcile
        # ====================================================================
        schedule = generate_round_robin_schedule(
            league_id,
            teams,
            league.start_date,
            league.end_date,
            courts,
            hours,
            options.match_duration_minutes,
        )
        if preferred:
            schedule = apply_preferred_courts(schedule, preferred, courts)

        # ====================================================================
        # Step 5: Persist with in-transaction availability re-check
        # ====================================================================
        versions = self._court_versions(session, courts)
        people_per_team = league.people_per_team()
        created: List[LeagueMatch] = []

        for scheduled in schedule:
            self._check_deadline(deadline, league_id)
            court_id = scheduled.court.id

            ensure_courts_available(
                self.availability_checker,
                session,
                league.facility_id,
                scheduled.start_time,
                scheduled.end_time,
                [court_id],
            )
            versions[court_id] = claim_court(session, court_id, versions[court_id])

            reservation = Reservation(
                facility_id=league.facility_id,
                reservation_type_id=reservation_type.id,
                start_time=scheduled.start_time,
                end_time=scheduled.end_time,
                is_open_event=False,
                teams_per_court=TEAMS_PER_COURT,
                people_per_team=people_per_team,
            )
            session.add(reservation)
            session.flush()

            session.add(ReservationCourt(reservation_id=reservation.id, court_id=court_id))

            match = LeagueMatch(
                league_id=league_id,
                home_team_id=scheduled.home_team.id,
                away_team_id=scheduled.away_team.id,
                reservation_id=reservation.id,
                round_number=scheduled.round_number,
                scheduled_time=scheduled.start_time,
                status=MATCH_SCHEDULED,
                updated_at=datetime.now(timezone.utc),
            )
            session.add(match)
            session.flush()
            created.append(match)

        return created

    def _court_versions(self, session: Session, courts: Sequence[Court]) -> Dict[int, int]:
        """booking_version of each court as read by this transaction."""
        return {court.id: court.booking_version for court in courts}

    def _check_deadline(self, deadline: float, league_id: int) -> None:
        if self.clock() > deadline:
            raise ScheduleTimeoutError(league_id, self.timeout_seconds)

    def _notify(self, league_id: int, matches: List[LeagueMatch]) -> None:
        for listener in self.listeners:
            try:
                listener(league_id, matches)
            except Exception:
                logger.exception("Schedule listener failed for league %s", league_id)
