from dataclasses import dataclass
from typing import Iterable

import sqlalchemy as sa
from sqlalchemy.orm import Session

from matchday.core.config import settings
from matchday.core.errors import Forbidden
from matchday.models.league_member import ADMIN_ROLES, LeagueMember
from matchday.models.match import Match
from matchday.services.ratings import HonorAward, next_league_average

_HONOR_COUNTERS = {
    "MVP": "honors_mvp",
    "TRONCO": "honors_tronco",
    "FANTASMA": "honors_fantasma",
    "ORACLE": "honors_prediction",
}

@dataclass
class MemberStats:
    user_id: str
    display_name: str | None
    league_overall: float | None
    matches_played: int
    honors_mvp: int

def member_stats(db: Session, league_id: str, user_ids: Iterable[str]) -> dict[str, MemberStats]:
    ids = list(user_ids)
    if not ids:
        return {}
    rows = db.scalars(
        sa.select(LeagueMember).where(LeagueMember.league_id == league_id, LeagueMember.user_id.in_(ids))
    ).all()
    return {
        m.user_id: MemberStats(
            user_id=m.user_id,
            display_name=m.display_name,
            league_overall=m.league_overall,
            matches_played=int(m.matches_played or 0),
            honors_mvp=int(m.honors_mvp or 0),
        )
        for m in rows
    }

def display_names(db: Session, league_id: str | None, user_ids: Iterable[str]) -> dict[str, str]:
    if not league_id:
        return {}
    return {uid: s.display_name for uid, s in member_stats(db, league_id, user_ids).items() if s.display_name}

def league_role(db: Session, league_id: str, user_id: str) -> str | None:
    return db.execute(
        sa.select(LeagueMember.role).where(LeagueMember.league_id == league_id, LeagueMember.user_id == user_id)
    ).scalar_one_or_none()

def require_member(db: Session, league_id: str, user_id: str) -> str:
    role = league_role(db, league_id, user_id)
    if role is None:
        raise Forbidden("Not a member of this league")
    return role

def require_league_admin(db: Session, league_id: str, user_id: str) -> str:
    role = league_role(db, league_id, user_id)
    if role not in ADMIN_ROLES:
        raise Forbidden()
    return role

def require_match_admin(db: Session, match: Match, user_id: str):
    # league-less fixtures are administered by whoever scheduled them
    if match.league_id is None:
        if match.admin_id != user_id:
            raise Forbidden("Only the match admin can do this")
        return
    require_league_admin(db, match.league_id, user_id)

def apply_match_results(
    db: Session,
    league_id: str,
    ratings: dict[str, float],
    awards: Iterable[HonorAward],
) -> dict[str, LeagueMember]:
    """Fold one closed match into the league statistics.

    Every rated player gets the match added to their running average and
    matches-played count; honor counters are bumped for every award. Returns
    the updated member rows keyed by user id.
    """
    awards = list(awards)
    ids = set(ratings) | {a.user_id for a in awards}
    if not ids:
        return {}

    members = {
        m.user_id: m
        for m in db.scalars(
            sa.select(LeagueMember)
            .where(LeagueMember.league_id == league_id, LeagueMember.user_id.in_(sorted(ids)))
            .with_for_update()
        ).all()
    }

    for user_id, rating in ratings.items():
        member = members.get(user_id)
        if member is None:
            continue
        n = int(member.matches_played or 0)
        member.league_overall = next_league_average(member.league_overall, n, rating, settings.BASELINE_RATING)
        member.matches_played = n + 1

    for award in awards:
        member = members.get(award.user_id)
        counter = _HONOR_COUNTERS.get(award.honor_type)
        if member is None or counter is None:
            continue
        setattr(member, counter, int(getattr(member, counter) or 0) + 1)

    return members
