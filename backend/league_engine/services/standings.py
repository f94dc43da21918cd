"""
Standings Calculator

Derives a ranked table from completed match results. Every team of the league
gets a row, including teams that have not played yet.

Ranking: wins, point differential, points for (all descending), then team id.
"""
import csv
import io
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from sqlmodel import Session, select

from league_engine.models.league import League
from league_engine.models.match import MATCH_COMPLETED, LeagueMatch
from league_engine.models.team import LeagueTeam
from league_engine.services.errors import NotFoundError, StandingsDataError

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Rank",
    "Team",
    "Matches Played",
    "Wins",
    "Losses",
    "Points For",
    "Points Against",
    "Point Differential",
]


@dataclass
class TeamStanding:
    team_id: int
    team_name: str
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    points_for: int = 0
    points_against: int = 0

    @property
    def point_differential(self) -> int:
        return self.points_for - self.points_against

    def to_dict(self) -> Dict:
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "matches_played": self.matches_played,
            "wins": self.wins,
            "losses": self.losses,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "point_differential": self.point_differential,
        }


def _sort_key(standing: TeamStanding):
    return (-standing.wins, -standing.point_differential, -standing.points_for, standing.team_id)


def calculate_standings(teams: Sequence[LeagueTeam], matches: Iterable[LeagueMatch]) -> List[TeamStanding]:
    """
    Aggregate completed matches into ranked standings.

    Matches that are not completed are ignored. A completed match with a
    missing score, a tie, or a team outside ``teams`` raises StandingsDataError.
    """
    table: Dict[int, TeamStanding] = {t.id: TeamStanding(team_id=t.id, team_name=t.name) for t in teams}

    for match in matches:
        if match.status != MATCH_COMPLETED:
            continue
        if match.home_score is None or match.away_score is None:
            raise StandingsDataError(f"Completed match {match.id} is missing a score")
        if match.home_score == match.away_score:
            raise StandingsDataError(f"Completed match {match.id} is tied")

        home = table.get(match.home_team_id)
        away = table.get(match.away_team_id)
        if home is None or away is None:
            raise StandingsDataError(f"Completed match {match.id} references a team outside the league")

        home.matches_played += 1
        away.matches_played += 1
        home.points_for += match.home_score
        home.points_against += match.away_score
        away.points_for += match.away_score
        away.points_against += match.home_score

        if match.home_score > match.away_score:
            home.wins += 1
            away.losses += 1
        else:
            away.wins += 1
            home.losses += 1

    return sorted(table.values(), key=_sort_key)


def load_standings(session: Session, league_id: int) -> List[TeamStanding]:
    """Read a league's teams and completed matches and rank them."""
    league = session.get(League, league_id)
    if not league:
        raise NotFoundError("League not found")

    teams = session.exec(select(LeagueTeam).where(LeagueTeam.league_id == league_id).order_by(LeagueTeam.id)).all()
    matches = session.exec(
        select(LeagueMatch)
        .where(LeagueMatch.league_id == league_id, LeagueMatch.status == MATCH_COMPLETED)
        .order_by(LeagueMatch.id)
    ).all()

    standings = calculate_standings(teams, matches)
    logger.debug("Computed standings for league %s from %d completed matches", league_id, len(matches))
    return standings


def standings_to_csv(standings: Sequence[TeamStanding]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    for rank, standing in enumerate(standings, start=1):
        writer.writerow(
            [
                rank,
                standing.team_name,
                standing.matches_played,
                standing.wins,
                standing.losses,
                standing.points_for,
                standing.points_against,
                standing.point_differential,
            ]
        )
    return buffer.getvalue()
