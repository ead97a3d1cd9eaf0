from dataclasses import dataclass, field
from typing import Iterable

from matchday.models.match import SUB_STATS

HONOR_ORDER = {"MVP": 0, "TRONCO": 1, "FANTASMA": 2, "ORACLE": 3, "FIGURE": 4}

@dataclass
class VoteRow:
    voter_id: str
    target_id: str
    overall: int
    pace: int | None = None
    defense: int | None = None
    technique: int | None = None
    physical: int | None = None
    attack: int | None = None

@dataclass
class PlayerRating:
    user_id: str
    match_rating: float
    votes_received: int
    sub_stats: dict[str, float | None] = field(default_factory=dict)

@dataclass(frozen=True)
class HonorAward:
    user_id: str
    honor_type: str

def _mean(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)

def aggregate_votes(votes: Iterable[VoteRow]) -> dict[str, PlayerRating]:
    """Per-target averages of every vote cast in a match.

    ``overall`` averages every vote, self-votes included. Sub-stats average
    only the scored values: NULL and 0 mean "not scored" and are left out of
    the mean instead of dragging it down.
    """
    by_target: dict[str, list[VoteRow]] = {}
    for vote in votes:
        if not vote.target_id:
            continue
        by_target.setdefault(vote.target_id, []).append(vote)

    out: dict[str, PlayerRating] = {}
    for target_id in sorted(by_target):
        rows = by_target[target_id]
        sub_stats = {}
        for stat in SUB_STATS:
            scored = [float(getattr(v, stat)) for v in rows if getattr(v, stat)]
            sub_stats[stat] = _mean(scored)
        out[target_id] = PlayerRating(
            user_id=target_id,
            match_rating=_mean([float(v.overall) for v in rows]),
            votes_received=len(rows),
            sub_stats=sub_stats,
        )
    return out

def historical_average(current_avg: float | None, matches_played: int | None, match_rating: float, baseline: float = 5.0) -> float:
    """League average before this match, back-solved from the post-match one.

    ``current_avg`` already includes this match and ``matches_played`` counts it.
    """
    if current_avg is None or not matches_played:
        return baseline
    n = int(matches_played)
    if n == 1:
        return float(match_rating)
    return (float(current_avg) * n - float(match_rating)) / (n - 1)

def compute_trend(match_rating: float, current_avg: float | None, matches_played: int | None, baseline: float = 5.0) -> float:
    return float(match_rating) - historical_average(current_avg, matches_played, match_rating, baseline)

def next_league_average(old_avg: float | None, matches_played: int, match_rating: float, baseline: float = 5.0) -> float:
    n = int(matches_played or 0)
    if n == 0:
        return float(match_rating)
    old = baseline if old_avg is None else float(old_avg)
    return (old * n + float(match_rating)) / (n + 1)

def assign_honors(
    ratings: dict[str, float],
    no_show_ids: Iterable[str] = (),
    best_predictor_ids: Iterable[str] = (),
) -> list[HonorAward]:
    """Honors for one match.

    ``ratings`` holds confirmed participants that received at least one vote.
    Ties share the honor: every player at the top rating is MVP and every
    player at the bottom rating is TRONCO, the latter only when the bottom is
    strictly below the top so nobody holds both.
    """
    awards: set[HonorAward] = set()

    if ratings:
        top = max(ratings.values())
        bottom = min(ratings.values())
        for user_id, rating in ratings.items():
            if rating == top:
                awards.add(HonorAward(user_id, "MVP"))
            if bottom < top and rating == bottom:
                awards.add(HonorAward(user_id, "TRONCO"))

    for user_id in no_show_ids:
        awards.add(HonorAward(user_id, "FANTASMA"))

    for user_id in best_predictor_ids:
        awards.add(HonorAward(user_id, "ORACLE"))

    return sorted(awards, key=lambda a: (HONOR_ORDER[a.honor_type], a.user_id))

def single_mvp(awards: Iterable[HonorAward]) -> str | None:
    mvps = [a.user_id for a in awards if a.honor_type == "MVP"]
    if len(mvps) == 1:
        return mvps[0]
    return None

def locker_room(comments: Iterable[tuple[str, str | None]], names: dict[str, str]) -> list[dict]:
    # (target_id, comment) -> quotes keyed by the target's name
    out = []
    for target_id, comment in comments:
        if comment is None or not comment.strip():
            continue
        out.append({"target_id": target_id, "target_name": names.get(target_id) or "Jugador", "comment": comment.strip()})
    return out
