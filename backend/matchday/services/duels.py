import logging
import random
from dataclasses import dataclass
from typing import Iterable

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from matchday.core.config import settings
from matchday.core.errors import (
    DuelAlreadyExists,
    InsufficientRoster,
    NoCompatiblePair,
    NotFound,
    SelectionFailure,
)
from matchday.models.duel import Duel
from matchday.models.match import Match
from matchday.services import notifications
from matchday.services.audit import audit
from matchday.services.lifecycle import get_match
from matchday.services.membership import member_stats

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class DuelCandidate:
    user_id: str
    rating: float
    team: str | None = None

@dataclass(frozen=True)
class CandidatePair:
    challenger: DuelCandidate
    rival: DuelCandidate
    gap: float
    compatibility: float
    cross_team: bool

def pair_key(a: str, b: str) -> frozenset:
    return frozenset((a, b))

def candidate_pairs(players: list[DuelCandidate], *, max_gap: float, excluded_keys=frozenset()) -> list[CandidatePair]:
    """Every admissible pair, best first.

    Ordering: opposite teams first, then compatibility (1 - gap/10) descending,
    then user ids so equal scores stay deterministic.
    """
    pairs = []
    ordered = sorted(players, key=lambda c: c.user_id)
    for i, a in enumerate(ordered):
        for b in ordered[i + 1:]:
            if a.user_id == b.user_id or pair_key(a.user_id, b.user_id) in excluded_keys:
                continue
            gap = abs(float(a.rating) - float(b.rating))
            if gap > max_gap:
                continue
            cross = a.team is not None and b.team is not None and a.team != b.team
            pairs.append(CandidatePair(
                challenger=a,
                rival=b,
                gap=round(gap, 2),
                compatibility=round(1 - gap / 10, 4),
                cross_team=cross,
            ))
    pairs.sort(key=lambda p: (not p.cross_team, -p.compatibility, p.challenger.user_id, p.rival.user_id))
    return pairs

def select_duel_pair(
    players: list[DuelCandidate],
    *,
    max_gap: float,
    excluded_keys=frozenset(),
    pool_size: int = 1,
    rng: random.Random | None = None,
) -> CandidatePair:
    try:
        pairs = candidate_pairs(players, max_gap=max_gap, excluded_keys=excluded_keys)
    except (TypeError, KeyError, ValueError) as exc:
        logger.exception("scoring duel candidates failed")
        raise SelectionFailure(str(exc)) from exc

    if not pairs:
        raise NoCompatiblePair()

    pool = pairs[: max(1, pool_size)]
    if len(pool) == 1:
        return pool[0]
    return (rng or random).choice(pool)

def recent_duel_pairs(db: Session, league_id: str, match_id: str, window: int) -> set[frozenset]:
    # pairs dueling in the league's last `window` completed fixtures
    if window <= 0:
        return set()
    recent = (
        sa.select(Match.id)
        .where(Match.league_id == league_id, Match.status == "COMPLETED", Match.id != match_id)
        .order_by(Match.date_time.desc(), Match.id)
        .limit(window)
    )
    rows = db.execute(
        sa.select(Duel.challenger_id, Duel.rival_id).where(Duel.match_id.in_(recent))
    ).all()
    return {pair_key(a, b) for a, b in rows}

def _existing_duel(db: Session, match_id: str) -> Duel | None:
    return db.execute(sa.select(Duel).where(Duel.match_id == match_id)).scalar_one_or_none()

def generate_duel(db: Session, match_id: str, *, actor_id: str | None = None, rng: random.Random | None = None) -> Duel:
    """Pick and persist the duel for a match.

    Preconditions are checked in order: match, no duel yet, league,
    two confirmed players, league stats for two of them.
    """
    match = get_match(db, match_id)
    if _existing_duel(db, match_id) is not None:
        raise DuelAlreadyExists()
    if not match.league_id:
        raise NotFound("Match has no league")

    confirmed = [p for p in match.players if p.has_confirmed]
    if len(confirmed) < 2:
        raise InsufficientRoster()

    stats = member_stats(db, match.league_id, [p.user_id for p in confirmed])
    candidates = [
        DuelCandidate(user_id=p.user_id, rating=stats[p.user_id].league_overall, team=p.team)
        for p in confirmed
        if p.user_id in stats
    ]
    if len(candidates) < 2:
        raise NotFound("League stats not found for the confirmed players")

    pair = select_duel_pair(
        candidates,
        max_gap=settings.DUEL_MAX_RATING_GAP,
        excluded_keys=recent_duel_pairs(db, match.league_id, match_id, settings.DUEL_REPEAT_WINDOW),
        pool_size=settings.DUEL_CANDIDATE_POOL,
        rng=rng,
    )

    duel = Duel(
        match_id=match_id,
        challenger_id=pair.challenger.user_id,
        rival_id=pair.rival.user_id,
        rating_gap=pair.gap,
        status="PENDING",
    )
    try:
        db.add(duel)
        db.flush()
        audit(db, actor_id, "duel", duel.id, "generated", {
            "match_id": match_id,
            "challenger_id": duel.challenger_id,
            "rival_id": duel.rival_id,
            "rating_gap": pair.gap,
        })
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuelAlreadyExists()

    logger.info("duel for match %s: %s vs %s (gap %.2f)", match_id, duel.challenger_id, duel.rival_id, pair.gap)
    notifications.dispatch(notifications.DUEL_GENERATED, [duel.challenger_id, duel.rival_id], {
        "match_id": match_id,
        "league_id": match.league_id,
        "duel_id": duel.id,
    })
    return duel

def _duel_player(user_id: str, stats: dict, teams: dict) -> dict:
    member = stats.get(user_id)
    overall = member.league_overall if member and member.league_overall is not None else settings.BASELINE_RATING
    return {
        "user_id": user_id,
        "display_name": member.display_name if member else None,
        "league_overall": round(float(overall), 2),
        "honors_mvp": member.honors_mvp if member else 0,
        "team": teams.get(user_id, "UNASSIGNED"),
    }

def duel_detail(db: Session, match_id: str) -> dict:
    match = get_match(db, match_id)
    duel = _existing_duel(db, match_id)
    if duel is None:
        raise NotFound("No duel for this match")

    ids: Iterable[str] = (duel.challenger_id, duel.rival_id)
    stats = member_stats(db, match.league_id, ids) if match.league_id else {}
    teams = {p.user_id: p.team for p in match.players}
    return {
        "id": duel.id,
        "match_id": match_id,
        "status": duel.status,
        "rating_gap": duel.rating_gap,
        "winner_id": duel.winner_id,
        "challenger": _duel_player(duel.challenger_id, stats, teams),
        "rival": _duel_player(duel.rival_id, stats, teams),
    }
