from league_engine.models.court import Court
from league_engine.models.facility import Facility
from league_engine.models.league import League
from league_engine.models.match import LeagueMatch
from league_engine.models.operating_hours import OperatingHours
from league_engine.models.reservation import Reservation, ReservationCourt, ReservationParticipant, ReservationType
from league_engine.models.team import LeagueTeam, TeamMember

__all__ = [
    "Facility",
    "Court",
    "OperatingHours",
    "League",
    "LeagueTeam",
    "TeamMember",
    "LeagueMatch",
    "Reservation",
    "ReservationCourt",
    "ReservationParticipant",
    "ReservationType",
]
