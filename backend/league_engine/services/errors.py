"""
League engine error taxonomy.

Services raise these; routes translate them to HTTP responses with
``http_error_for``. Messages of ``InternalError`` never reach clients.
"""
from typing import Optional

from fastapi import HTTPException


class LeagueEngineError(Exception):
    """Base exception for league engine errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LeagueEngineError):
    """Malformed or out-of-range input; surfaced verbatim, never retried"""

    status_code = 422


class NotFoundError(LeagueEngineError):
    """League, team, court or match does not exist (or belongs elsewhere)"""

    status_code = 404


class ConflictError(LeagueEngineError):
    """Request is well-formed but conflicts with current state"""

    status_code = 409


class InternalError(LeagueEngineError):
    """Persistence or transaction failure; logged, surfaced opaquely"""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str, public_message: Optional[str] = None):
        super().__init__(message)
        if public_message:
            self.public_message = public_message


class ScheduleGenerationError(ValidationError):
    """Round-robin schedule cannot be produced from the given inputs"""

    pass


class ScheduleExistsError(ConflictError):
    pass


class CourtUnavailableError(ConflictError):
    def __init__(self, court_ids):
        self.court_ids = sorted(court_ids)
        joined = ", ".join(str(c) for c in self.court_ids)
        super().__init__(f"Court unavailable for scheduled match: {joined}")


class RosterLockedError(ConflictError):
    def __init__(self, league_id: int):
        super().__init__("Roster is locked for this league")
        self.league_id = league_id


class InvalidScoreError(ConflictError):
    pass


class MatchStateError(ConflictError):
    pass


class ScheduleTimeoutError(InternalError):
    def __init__(self, league_id: int, timeout_seconds: float):
        super().__init__(
            f"Schedule generation for league {league_id} exceeded {timeout_seconds}s",
            public_message="Schedule generation timed out",
        )


class StandingsDataError(InternalError):
    def __init__(self, message: str):
        super().__init__(message, public_message="Failed to load standings")


def http_error_for(exc: LeagueEngineError) -> HTTPException:
    """Map a league engine error to the HTTPException the routes raise."""
    if isinstance(exc, InternalError):
        return HTTPException(status_code=exc.status_code, detail=exc.public_message)
    return HTTPException(status_code=exc.status_code, detail=exc.message)
