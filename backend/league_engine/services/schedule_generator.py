"""
Round Robin Schedule Generator

Pure, deterministic placement of a league's round-robin pairings onto
(day, time slot, court) triples. No database access: callers load the active
teams, active courts and operating hours and pass them in.

Pairing (circle method):
    - Odd team counts get a virtual BYE so every round has N/2 pairings
    - The first team stays fixed; the others rotate one position per round
    - Home/away of the fixed team's pairing alternates by round

Placement:
    - A bounded cursor walks calendar days from start_date to end_date
    - Each day's operating window is cut into contiguous slots of match length
    - Pairings are taken in round order; each slot fills its courts (lowest
      court number first) with the earliest pending pairings whose teams are
      not already playing in that slot, so a round's leftover pairing shares
      a slot with the next round and no team is booked twice at once
    - Operating hours use day_of_week 0 = Sunday .. 6 = Saturday

Same inputs (team order, dates, courts, hours, duration) always produce the
same schedule.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from league_engine import config
from league_engine.models.court import Court
from league_engine.models.operating_hours import OperatingHours
from league_engine.models.team import LeagueTeam
from league_engine.services.errors import ScheduleGenerationError


@dataclass
class RoundPairings:
    round_number: int
    pairings: List[Tuple[LeagueTeam, LeagueTeam]] = field(default_factory=list)  # (home, away)
    bye: Optional[LeagueTeam] = None  # team sitting out this round (odd N only)


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    end: datetime


@dataclass
class ScheduledMatch:
    league_id: int
    round_number: int
    home_team: LeagueTeam
    away_team: LeagueTeam
    court: Court
    start_time: datetime
    end_time: datetime

    @property
    def team_ids(self) -> Tuple[int, int]:
        return (self.home_team.id, self.away_team.id)


# =============================================================================
# Pairings
# =============================================================================


def build_round_robin_rounds(teams: Sequence[LeagueTeam]) -> List[RoundPairings]:
    """
    Circle-method pairings for every round.

    Returns N-1 rounds for even N and N rounds for odd N; in the odd case each
    round names the single team that sits out.
    """
    working: List[Optional[LeagueTeam]] = list(teams)
    if len(working) % 2 == 1:
        working.append(None)  # BYE

    size = len(working)
    rounds: List[RoundPairings] = []

    for round_idx in range(size - 1):
        current = RoundPairings(round_number=round_idx + 1)
        for i in range(size // 2):
            left = working[i]
            right = working[size - 1 - i]
            if left is None or right is None:
                current.bye = right if left is None else left
                continue
            home, away = left, right
            if i == 0 and round_idx % 2 == 1:
                home, away = away, home
            current.pairings.append((home, away))
        rounds.append(current)
        _rotate(working)

    return rounds


def _rotate(working: List[Optional[LeagueTeam]]) -> None:
    """Keep index 0 fixed; move the last entry to index 1 and shift the rest right."""
    if len(working) <= 2:
        return
    working[1:] = [working[-1]] + working[1:-1]


# =============================================================================
# Slots
# =============================================================================


def build_hours_by_weekday(operating_hours: Iterable[OperatingHours]) -> Dict[int, Tuple[time, time]]:
    """Map day_of_week (0=Sunday) to (opens_at, closes_at), skipping days with no hours set."""
    result: Dict[int, Tuple[time, time]] = {}
    for hours in operating_hours:
        if hours.opens_at is None or hours.closes_at is None:
            continue
        if not 0 <= hours.day_of_week <= 6:
            raise ScheduleGenerationError(f"Invalid day_of_week {hours.day_of_week} in operating hours")
        result[hours.day_of_week] = (hours.opens_at, hours.closes_at)
    return result


def facility_weekday(day: date) -> int:
    """day_of_week of a date as stored in operating hours (0=Sunday .. 6=Saturday)."""
    return (day.weekday() + 1) % 7


def iter_time_slots(
    start_date: date,
    end_date: date,
    hours_by_weekday: Dict[int, Tuple[time, time]],
    duration: timedelta,
    max_slots: int,
) -> Iterator[TimeSlot]:
    """
    Walk [start_date, end_date] one day at a time, yielding every full-length slot.

    Raises ScheduleGenerationError once more than max_slots slots have been
    considered, so even a pathological date range terminates.
    """
    considered = 0
    day = start_date
    while day <= end_date:
        window = hours_by_weekday.get(facility_weekday(day))
        if window is not None:
            day_open = datetime.combine(day, window[0])
            day_close = datetime.combine(day, window[1])
            cursor = day_open
            while cursor + duration <= day_close:
                considered += 1
                if considered > max_slots:
                    raise ScheduleGenerationError(
                        f"Slot search exceeded the safety cap of {max_slots} slots"
                    )
                yield TimeSlot(start=cursor, end=cursor + duration)
                cursor += duration
        day += timedelta(days=1)


# =============================================================================
# Schedule
# =============================================================================


def generate_round_robin_schedule(
    league_id: int,
    teams: Sequence[LeagueTeam],
    start_date: date,
    end_date: date,
    courts: Sequence[Court],
    operating_hours: Iterable[OperatingHours],
    match_duration_minutes: int = 60,
    max_slot_candidates: Optional[int] = None,
) -> List[ScheduledMatch]:
    """
    Produce the full round-robin schedule for a league.

    Args:
        league_id: League the matches belong to
        teams: Active teams, in the order that seeds the circle method
        start_date, end_date: Inclusive scheduling window
        courts: Active courts (placed in ascending court number)
        operating_hours: Facility hours per weekday
        match_duration_minutes: Length of every slot
        max_slot_candidates: Safety cap on slots walked (defaults to config)

    Raises:
        ScheduleGenerationError: if any pairing cannot be placed
    """
    if league_id is None or league_id <= 0:
        raise ScheduleGenerationError("League ID is required")
    if len(teams) < 2:
        raise ScheduleGenerationError("At least two active teams are required")
    team_ids = [t.id for t in teams]
    if len(set(team_ids)) != len(team_ids):
        raise ScheduleGenerationError("Team list contains duplicates")
    if not courts:
        raise ScheduleGenerationError("At least one active court is required")
    if match_duration_minutes is None or match_duration_minutes <= 0:
        raise ScheduleGenerationError("Match duration must be positive")
    if end_date < start_date:
        raise ScheduleGenerationError("Start date must be on or before end date")

    hours_by_weekday = build_hours_by_weekday(operating_hours)
    if not hours_by_weekday:
        raise ScheduleGenerationError("Operating hours are required")

    ordered_courts = sorted(courts, key=lambda c: (c.number, c.id))
    rounds = build_round_robin_rounds(teams)
    total_pairings = sum(len(r.pairings) for r in rounds)

    slots = iter_time_slots(
        start_date,
        end_date,
        hours_by_weekday,
        timedelta(minutes=match_duration_minutes),
        max_slot_candidates if max_slot_candidates is not None else config.MAX_SLOT_CANDIDATES,
    )

    schedule: List[ScheduledMatch] = []
    pending: List[Tuple[int, LeagueTeam, LeagueTeam]] = [
        (r.round_number, home, away) for r in rounds for home, away in r.pairings
    ]
    while pending:
        slot = next(slots, None)
        if slot is None:
            if not schedule:
                raise ScheduleGenerationError("No available match slots in the league date range")
            raise ScheduleGenerationError(
                f"Insufficient slots: need {total_pairings} matches but only {len(schedule)} fit "
                f"between {start_date.isoformat()} and {end_date.isoformat()}"
            )

        # Earliest pending pairings whose teams are both free in this slot.
        busy = set()
        placed: List[int] = []
        for idx, (_, home, away) in enumerate(pending):
            if len(placed) == len(ordered_courts):
                break
            if home.id in busy or away.id in busy:
                continue
            busy.update((home.id, away.id))
            placed.append(idx)

        for court, idx in zip(ordered_courts, placed):
            round_number, home, away = pending[idx]
            schedule.append(
                ScheduledMatch(
                    league_id=league_id,
                    round_number=round_number,
                    home_team=home,
                    away_team=away,
                    court=court,
                    start_time=slot.start,
                    end_time=slot.end,
                )
            )
        placed_set = set(placed)
        pending = [p for idx, p in enumerate(pending) if idx not in placed_set]

    return schedule
