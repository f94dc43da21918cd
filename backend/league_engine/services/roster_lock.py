"""
Roster lock predicate.

A league's roster locks at local midnight (facility timezone) at the start of
its roster_lock_date. Leagues without a lock date never lock.
"""
import logging
from datetime import date, datetime, time
from typing import Optional

import pytz

from league_engine.models.facility import Facility
from league_engine.models.league import League
from league_engine.services.errors import RosterLockedError

logger = logging.getLogger(__name__)


def roster_lock_timezone(name: Optional[str]):
    """Resolve a facility timezone name; blank or unknown names fall back to UTC."""
    if not name or not name.strip():
        return pytz.UTC
    try:
        return pytz.timezone(name.strip())
    except pytz.UnknownTimeZoneError:
        logger.warning("Failed to load facility timezone %r; using UTC", name)
        return pytz.UTC


def roster_lock_time(lock_date: date, tz) -> datetime:
    """Local midnight of lock_date as an aware datetime."""
    return tz.localize(datetime.combine(lock_date, time.min))


def is_roster_locked_at(lock_date: Optional[date], tz, now: datetime) -> bool:
    if lock_date is None:
        return False
    if tz is None:
        tz = pytz.UTC
    if now.tzinfo is None:
        now = pytz.UTC.localize(now)
    return now.astimezone(tz) >= roster_lock_time(lock_date, tz)


def is_roster_locked(league: League, facility: Optional[Facility], now: Optional[datetime] = None) -> bool:
    tz = roster_lock_timezone(facility.timezone if facility else None)
    return is_roster_locked_at(league.roster_lock_date, tz, now or datetime.now(pytz.UTC))


def ensure_roster_unlocked(league: League, facility: Optional[Facility], now: Optional[datetime] = None) -> None:
    if is_roster_locked(league, facility, now):
        logger.info("Roster change rejected for league %s: locked since %s", league.id, league.roster_lock_date)
        raise RosterLockedError(league.id)
