"""
Match result validation and recording.

A result is valid when both scores are non-negative integers, the match is
not tied, the winner leads by at least two and has at least eleven points.
Recording moves a match from scheduled / in_progress to completed exactly once.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from league_engine.models.league import League
from league_engine.models.match import MATCH_COMPLETED, RECORDABLE_STATUSES, LeagueMatch
from league_engine.services.errors import (
    InternalError,
    InvalidScoreError,
    MatchStateError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MIN_WINNING_SCORE = 11
MIN_WINNING_MARGIN = 2


def _require_score(value: Any, side: str) -> int:
    if value is None:
        raise ValidationError(f"{side} score is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{side} score must be an integer")
    if value < 0:
        raise ValidationError(f"{side} score cannot be negative")
    return value


def validate_match_result(home_score: Any, away_score: Any) -> None:
    """Raise ValidationError / InvalidScoreError for scores that cannot stand."""
    home = _require_score(home_score, "Home")
    away = _require_score(away_score, "Away")

    if home == away:
        raise InvalidScoreError("Matches cannot end in a tie")

    winner, loser = max(home, away), min(home, away)
    if winner - loser < MIN_WINNING_MARGIN:
        raise InvalidScoreError("Winner must lead by at least two points")
    if winner < MIN_WINNING_SCORE:
        raise InvalidScoreError(f"Winning score must be at least {MIN_WINNING_SCORE} points")


def record_match_result(
    session: Session, league_id: int, match_id: int, home_score: Any, away_score: Any
) -> LeagueMatch:
    """
    Validate and store a final score, completing the match.

    The status transition is a conditional UPDATE, so of two concurrent
    recorders exactly one succeeds. Commits on success.
    """
    validate_match_result(home_score, away_score)

    league = session.get(League, league_id)
    if not league:
        raise NotFoundError("League not found")

    match = session.get(LeagueMatch, match_id)
    if not match or match.league_id != league_id:
        raise NotFoundError("Match not found")

    try:
        result = session.connection().execute(
            update(LeagueMatch)
            .where(
                LeagueMatch.id == match_id,
                LeagueMatch.league_id == league_id,
                LeagueMatch.status.in_(RECORDABLE_STATUSES),
            )
            .values(
                home_score=home_score,
                away_score=away_score,
                status=MATCH_COMPLETED,
                updated_at=datetime.now(timezone.utc),
            )
        )
        if result.rowcount == 1:
            session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Database error while recording result for match %s in league %s", match_id, league_id)
        raise InternalError(
            f"Failed to record result for match {match_id}: {exc}", public_message="Failed to record match result"
        ) from exc

    if result.rowcount != 1:
        session.rollback()
        logger.info("Rejected result for match %s in league %s: status is %s", match_id, league_id, match.status)
        raise MatchStateError("Match result can only be recorded for scheduled or in-progress matches")

    session.refresh(match)
    logger.info("Recorded result %s-%s for match %s in league %s", home_score, away_score, match_id, league_id)
    return match
