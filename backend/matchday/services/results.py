"""Read-side views of matches: schedule, detail, pending votes and results.

Reads that can observe an expired voting window close it first, so callers
never see a FINISHED match past its deadline.
"""

from datetime import datetime, timedelta

import sqlalchemy as sa
from sqlalchemy.orm import Session

from matchday.core.config import settings
from matchday.core.security import as_utc, now_utc
from matchday.models.honor import Honor
from matchday.models.match import SUB_STATS, TERMINAL_STATUSES, Match, MatchPlayer
from matchday.models.vote import MatchBallot, MatchVote
from matchday.services.lifecycle import close_expired_matches, close_if_expired, get_match, voting_deadline
from matchday.services.membership import display_names
from matchday.services.predictions import leaderboard
from matchday.services.ratings import locker_room

def match_summary(match: Match) -> dict:
    return {
        "id": match.id,
        "league_id": match.league_id,
        "admin_id": match.admin_id,
        "is_external": match.is_external,
        "location_name": match.location_name,
        "date_time": as_utc(match.date_time),
        "price_per_player": float(match.price_per_player or 0),
        "status": match.status,
        "team_a_score": match.team_a_score,
        "team_b_score": match.team_b_score,
        "mvp_id": match.mvp_id,
        "closed_at": as_utc(match.closed_at) if match.closed_at else None,
    }

def _voters(db: Session, match_id: str) -> set[str]:
    ballots = db.scalars(sa.select(MatchBallot.voter_id).where(MatchBallot.match_id == match_id)).all()
    return set(ballots)

def _honors(db: Session, match_id: str) -> list[dict]:
    rows = db.scalars(
        sa.select(Honor).where(Honor.match_id == match_id).order_by(Honor.honor_type, Honor.user_id)
    ).all()
    return [{"user_id": h.user_id, "honor_type": h.honor_type} for h in rows]

def _comments(db: Session, match: Match, names: dict[str, str]) -> list[dict]:
    rows = db.execute(
        sa.select(MatchVote.target_id, MatchVote.comment)
        .where(MatchVote.match_id == match.id, MatchVote.comment.is_not(None))
        .order_by(MatchVote.created_at, MatchVote.id)
    ).all()
    return locker_room([(target, comment) for target, comment in rows], names)

def _player_row(p: MatchPlayer, names: dict[str, str], voters: set[str]) -> dict:
    row = {
        "user_id": p.user_id,
        "display_name": names.get(p.user_id),
        "team": p.team,
        "position": p.position,
        "has_confirmed": p.has_confirmed,
        "has_voted": p.user_id in voters,
        "match_rating": p.match_rating,
        "trend": p.match_trend,
    }
    for stat in SUB_STATS:
        row[f"match_{stat}"] = getattr(p, f"match_{stat}")
    return row

def match_detail(db: Session, match_id: str, *, now: datetime | None = None) -> dict:
    match = close_if_expired(db, get_match(db, match_id), now)

    names = display_names(db, match.league_id, [p.user_id for p in match.players])
    voters = _voters(db, match.id)
    players = [_player_row(p, names, voters) for p in match.players]
    return {
        **match_summary(match),
        "voting_deadline": voting_deadline(match),
        "players": players,
        "comments": _comments(db, match, names),
        "honors": _honors(db, match.id),
    }

def match_results(db: Session, match_id: str, *, now: datetime | None = None) -> dict:
    match = close_if_expired(db, get_match(db, match_id), now)

    names = display_names(db, match.league_id, [p.user_id for p in match.players])
    voters = _voters(db, match.id)
    rated = [p for p in match.players if p.has_confirmed]
    rated.sort(key=lambda p: (-(p.match_rating if p.match_rating is not None else -1), p.user_id))
    return {
        **match_summary(match),
        "players": [_player_row(p, names, voters) for p in rated],
        "comments": _comments(db, match, names),
        "honors": _honors(db, match.id),
        "predictions": leaderboard(db, match.id),
    }

def list_matches(db: Session, league_id: str, *, now: datetime | None = None) -> list[dict]:
    close_expired_matches(db, league_id=league_id, now=now)

    matches = db.scalars(
        sa.select(Match)
        .where(Match.league_id == league_id, Match.status.not_in(TERMINAL_STATUSES))
        .order_by(Match.date_time, Match.id)
    ).all()
    return [{**match_summary(m), "players_count": len(m.players)} for m in matches]

def next_match(db: Session, league_id: str, user_id: str, *, now: datetime | None = None) -> dict | None:
    now = now or now_utc()
    match = db.scalars(
        sa.select(Match)
        .where(
            Match.league_id == league_id,
            Match.date_time >= now,
            Match.status.not_in(TERMINAL_STATUSES),
        )
        .order_by(Match.date_time, Match.id)
        .limit(1)
    ).first()
    if match is None:
        return None

    user_status = "NOT_CONVOKED"
    for p in match.players:
        if p.user_id == user_id:
            user_status = "CONFIRMED" if p.has_confirmed else "PENDING"
            break
    return {**match_summary(match), "user_status": user_status}

def pending_votes(db: Session, league_id: str, user_id: str, *, now: datetime | None = None) -> list[dict]:
    """Matches of the league still open for voting where the user played."""
    now = now or now_utc()
    close_expired_matches(db, league_id=league_id, now=now)

    matches = db.scalars(
        sa.select(Match)
        .join(MatchPlayer, MatchPlayer.match_id == Match.id)
        .where(
            Match.league_id == league_id,
            Match.status == "FINISHED",
            MatchPlayer.user_id == user_id,
            MatchPlayer.has_confirmed.is_(True),
        )
        .order_by(Match.date_time, Match.id)
    ).all()

    out = []
    for m in matches:
        out.append({
            "id": m.id,
            "location_name": m.location_name,
            "date_time": as_utc(m.date_time),
            "status": m.status,
            "voting_deadline": voting_deadline(m),
            "has_voted": user_id in _voters(db, m.id),
        })
    return out

def recent_results(db: Session, league_id: str, user_id: str, *, now: datetime | None = None) -> list[dict]:
    now = now or now_utc()
    since = now - timedelta(hours=settings.RECENT_RESULTS_HOURS)
    rows = db.execute(
        sa.select(Match, MatchPlayer)
        .join(MatchPlayer, MatchPlayer.match_id == Match.id)
        .where(
            Match.league_id == league_id,
            Match.status == "COMPLETED",
            Match.closed_at >= since,
            MatchPlayer.user_id == user_id,
            MatchPlayer.has_confirmed.is_(True),
        )
        .order_by(Match.closed_at.desc(), Match.id)
    ).all()
    return [
        {
            **match_summary(m),
            "match_rating": p.match_rating,
            "trend": p.match_trend,
            "is_mvp": m.mvp_id == user_id,
        }
        for m, p in rows
    ]
