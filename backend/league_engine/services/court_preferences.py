"""
Court preference reconciliation for schedule regeneration.

When a league is regenerated with preserve_courts, each pairing should land on
the court it used before whenever that court is still active and free within
the same start time. Best effort: unsatisfied matches take the lowest-numbered
court left in their time group.
"""

from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from league_engine.models.court import Court
from league_engine.services.errors import ScheduleGenerationError
from league_engine.services.schedule_generator import ScheduledMatch

PairKey = Tuple[int, int]


def pair_key(team_a_id: int, team_b_id: int) -> PairKey:
    """Order-independent key for a pairing."""
    if team_a_id > team_b_id:
        team_a_id, team_b_id = team_b_id, team_a_id
    return (team_a_id, team_b_id)


def build_preferred_court_map(rows: Iterable[Tuple[int, int, Optional[int]]]) -> Dict[PairKey, int]:
    """
    Build {pair_key: court_id} from (home_team_id, away_team_id, court_id) rows.

    Rows without a court are skipped. Rows are consumed in the order given, so
    for a repeated pairing the last row wins.
    """
    preferred: Dict[PairKey, int] = {}
    for home_id, away_id, court_id in rows:
        if court_id is None:
            continue
        preferred[pair_key(home_id, away_id)] = court_id
    return preferred


def apply_preferred_courts(
    schedule: Sequence[ScheduledMatch],
    preferred: Dict[PairKey, int],
    courts: Sequence[Court],
) -> List[ScheduledMatch]:
    """
    Reassign courts within each start-time group to honour prior assignments.

    Groups are processed chronologically; inside a group matches keep their
    generated order. Guarantees no court appears twice in one group.
    """
    court_order = sorted(courts, key=lambda c: (c.number, c.id))
    court_lookup: Dict[int, Court] = {c.id: c for c in court_order if c.is_active}

    result = list(schedule)
    groups: Dict[datetime, List[int]] = defaultdict(list)
    for idx, match in enumerate(result):
        groups[match.start_time].append(idx)

    for start_time in sorted(groups.keys()):
        indices = groups[start_time]
        available = [c.id for c in court_order if c.id in court_lookup]
        satisfied = set()

        for idx in indices:
            match = result[idx]
            court_id = preferred.get(pair_key(match.home_team.id, match.away_team.id))
            if court_id is not None and court_id in available:
                result[idx] = replace(match, court=court_lookup[court_id])
                available.remove(court_id)
                satisfied.add(idx)

        for idx in indices:
            if idx in satisfied:
                continue
            if not available:
                raise ScheduleGenerationError(
                    f"More matches than active courts at {start_time.isoformat()}"
                )
            court_id = available.pop(0)
            result[idx] = replace(result[idx], court=court_lookup[court_id])

    return result
