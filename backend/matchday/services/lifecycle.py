import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

import sqlalchemy as sa
from sqlalchemy.orm import Session

from matchday.core.config import settings
from matchday.core.errors import InvalidTransition, MatchdayError, NotFound
from matchday.core.security import as_utc, now_utc
from matchday.models.honor import Honor
from matchday.models.match import MATCH_STATUSES, SUB_STATS, TERMINAL_STATUSES, Match, MatchPlayer
from matchday.models.vote import MatchBallot, MatchVote
from matchday.services import notifications
from matchday.services.audit import audit
from matchday.services.membership import apply_match_results, member_stats
from matchday.services.predictions import best_predictors
from matchday.services.ratings import (
    HonorAward,
    VoteRow,
    aggregate_votes,
    assign_honors,
    compute_trend,
    single_mvp,
)

logger = logging.getLogger(__name__)

SCORE_EDITABLE_STATUSES = ("ACTIVE", "FINISHED", "COMPLETED")

@dataclass
class CloseOutcome:
    ratings: dict[str, float]
    awards: list[HonorAward]
    mvp_id: str | None

def get_match(db: Session, match_id: str, *, for_update: bool = False) -> Match:
    q = sa.select(Match).where(Match.id == match_id).execution_options(populate_existing=True)
    if for_update:
        q = q.with_for_update()
    match = db.execute(q).scalar_one_or_none()
    if match is None:
        raise NotFound("Match not found")
    return match

def voting_deadline(match: Match) -> datetime:
    return as_utc(match.date_time) + timedelta(hours=settings.VOTING_WINDOW_HOURS)

def voting_expired(match: Match, now: datetime | None = None) -> bool:
    return (now or now_utc()) > voting_deadline(match)

def roster_ids(match: Match, *, confirmed: bool | None = None) -> list[str]:
    return [p.user_id for p in match.players if confirmed is None or p.has_confirmed == confirmed]

def _sync_roster(match: Match, players) -> list[str]:
    """Replace the roster with ``players`` keeping confirmations of those who stay.

    Returns the ids of newly convened players.
    """
    wanted = {}
    for pos, p in enumerate(players):
        wanted[p.user_id] = ("A" if match.is_external else p.team, pos)

    current = {p.user_id: p for p in match.players}
    for user_id, row in current.items():
        if user_id not in wanted:
            match.players.remove(row)

    added = []
    for user_id, (team, pos) in wanted.items():
        row = current.get(user_id)
        if row is None:
            match.players.append(MatchPlayer(user_id=user_id, team=team, position=pos, has_confirmed=False))
            added.append(user_id)
        else:
            row.team = team
            row.position = pos
    return added

def create_match(
    db: Session,
    *,
    league_id: str | None,
    admin_id: str,
    location: str,
    date_time: datetime,
    price: float = 0,
    players=(),
    is_external: bool = False,
) -> Match:
    match = Match(
        league_id=league_id,
        admin_id=admin_id,
        location_name=location.strip(),
        date_time=as_utc(date_time),
        price_per_player=price or 0,
        is_external=is_external,
        status="OPEN",
    )
    db.add(match)
    convened = _sync_roster(match, players)
    db.flush()

    audit(db, admin_id, "match", match.id, "created", {
        "league_id": league_id,
        "date_time": as_utc(date_time).isoformat(),
        "players": convened,
    })
    db.commit()

    notifications.dispatch(notifications.MATCH_CONVENED, convened, {
        "match_id": match.id,
        "league_id": league_id,
        "location": match.location_name,
        "date_time": as_utc(match.date_time).isoformat(),
    })
    return match

def update_match(
    db: Session,
    match_id: str,
    *,
    actor_id: str,
    location: str | None = None,
    date_time: datetime | None = None,
    price: float | None = None,
    players=None,
    team_a_score: int | None = None,
    team_b_score: int | None = None,
) -> Match:
    match = get_match(db, match_id, for_update=True)
    changes: dict = {}

    if players is not None and match.status != "OPEN":
        raise InvalidTransition(f"Roster can only change while the match is OPEN (status={match.status})")
    schedule_edit = location is not None or date_time is not None or price is not None
    if schedule_edit and match.status in TERMINAL_STATUSES:
        raise InvalidTransition(f"Schedule cannot change once the match is {match.status}")
    score_edit = team_a_score is not None or team_b_score is not None
    if score_edit and match.status not in SCORE_EDITABLE_STATUSES:
        raise InvalidTransition(f"Score cannot be recorded while the match is {match.status}")

    if location is not None:
        match.location_name = location.strip()
        changes["location"] = match.location_name
    if date_time is not None:
        match.date_time = as_utc(date_time)
        changes["date_time"] = match.date_time.isoformat()
    if price is not None:
        match.price_per_player = price
        changes["price"] = float(price)
    if team_a_score is not None:
        match.team_a_score = team_a_score
        changes["team_a_score"] = team_a_score
    if team_b_score is not None:
        match.team_b_score = team_b_score
        changes["team_b_score"] = team_b_score

    convened: list[str] = []
    if players is not None:
        convened = _sync_roster(match, players)
        changes["players"] = [p.user_id for p in players]

    audit(db, actor_id, "match", match.id, "updated", changes)
    db.commit()

    if convened:
        notifications.dispatch(notifications.MATCH_CONVENED, convened, {
            "match_id": match.id,
            "league_id": match.league_id,
            "location": match.location_name,
        })
    return match

def set_attendance(db: Session, match_id: str, user_id: str, confirmed: bool) -> Match:
    open_match = sa.select(Match.id).where(Match.id == match_id, Match.status == "OPEN")
    result = db.execute(
        sa.update(MatchPlayer)
        .where(
            MatchPlayer.match_id == match_id,
            MatchPlayer.user_id == user_id,
            MatchPlayer.match_id.in_(open_match),
        )
        .values(has_confirmed=confirmed)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        match = get_match(db, match_id)
        if user_id not in roster_ids(match):
            raise NotFound("Player is not convened to this match")
        raise InvalidTransition(f"Attendance can only change while the match is OPEN (status={match.status})")
    db.commit()
    db.expire_all()
    return get_match(db, match_id)

def _finalize_ratings(db: Session, match: Match, *, apply_league_stats: bool) -> CloseOutcome:
    votes = db.scalars(sa.select(MatchVote).where(MatchVote.match_id == match.id)).all()
    aggregated = aggregate_votes(
        VoteRow(
            voter_id=v.voter_id,
            target_id=v.target_id,
            overall=v.overall,
            **{stat: getattr(v, stat) for stat in SUB_STATS},
        )
        for v in votes
    )

    confirmed = [p for p in match.players if p.has_confirmed]
    no_shows = [p.user_id for p in match.players if not p.has_confirmed]
    ratings: dict[str, float] = {}

    for p in match.players:
        agg = aggregated.get(p.user_id) if p.has_confirmed else None
        if agg is not None:
            ratings[p.user_id] = agg.match_rating
            p.match_rating = agg.match_rating
            for stat in SUB_STATS:
                setattr(p, f"match_{stat}", agg.sub_stats.get(stat))
        else:
            p.match_rating = settings.BASELINE_RATING if p.has_confirmed else None
            for stat in SUB_STATS:
                setattr(p, f"match_{stat}", None)
        p.match_trend = None

    awards = assign_honors(ratings, no_shows, best_predictors(db, match.id))

    db.execute(sa.delete(Honor).where(Honor.match_id == match.id))
    for award in awards:
        db.add(Honor(match_id=match.id, user_id=award.user_id, league_id=match.league_id, honor_type=award.honor_type))

    members = {}
    if match.league_id and apply_league_stats:
        members = apply_match_results(db, match.league_id, ratings, awards)
    elif match.league_id:
        members = member_stats(db, match.league_id, ratings)

    for p in confirmed:
        if p.user_id not in ratings:
            continue
        member = members.get(p.user_id)
        p.match_trend = compute_trend(
            ratings[p.user_id],
            member.league_overall if member else None,
            member.matches_played if member else None,
            settings.BASELINE_RATING,
        )

    return CloseOutcome(ratings=ratings, awards=awards, mvp_id=single_mvp(awards))

def close_match(db: Session, match_id: str, *, now: datetime | None = None, actor_id: str | None = None, reason: str = "lazy") -> Match:
    """Finalize ratings, honors and league stats, then flip the match to COMPLETED.

    Idempotent: a COMPLETED match is returned untouched. Aggregation and the
    status flip commit together; the flip is conditional on the status read
    under lock, so a concurrent closer that got there first makes this call
    roll back and return the already closed match.
    """
    now = now or now_utc()
    match = get_match(db, match_id, for_update=True)
    if match.status == "COMPLETED":
        return match

    prior = match.status
    try:
        outcome = _finalize_ratings(db, match, apply_league_stats=match.closed_at is None)
        db.flush()
        flipped = db.execute(
            sa.update(Match)
            .where(Match.id == match_id, Match.status == prior)
            .values(status="COMPLETED", closed_at=now, mvp_id=outcome.mvp_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not flipped:
            db.rollback()
            logger.info("match %s closed concurrently, keeping the winner's result", match_id)
            return get_match(db, match_id)

        audit(db, actor_id, "match", match_id, "closed", {
            "reason": reason,
            "from_status": prior,
            "rated_players": len(outcome.ratings),
            "honors": [[a.user_id, a.honor_type] for a in outcome.awards],
        })
        db.commit()
    except MatchdayError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("closing match %s failed", match_id)
        raise

    db.refresh(match)
    logger.info("match %s closed (%s): %d rated, mvp=%s", match_id, reason, len(outcome.ratings), outcome.mvp_id)
    _notify_closed(match, outcome)
    return match

def _notify_closed(match: Match, outcome: CloseOutcome):
    data = {"match_id": match.id, "league_id": match.league_id, "location": match.location_name}
    notifications.dispatch(notifications.VOTING_CLOSED, roster_ids(match), data)
    for award in outcome.awards:
        notifications.dispatch(notifications.HONOR_AWARDED, [award.user_id], {**data, "honor_type": award.honor_type})

def close_if_expired(db: Session, match: Match, now: datetime | None = None) -> Match:
    if match.status == "FINISHED" and voting_expired(match, now):
        return close_match(db, match.id, now=now, reason="voting_window_elapsed")
    return match

def close_expired_matches(db: Session, league_id: str | None = None, now: datetime | None = None) -> list[str]:
    """Close every FINISHED match whose voting window has elapsed.

    Scoped to one league on the read path; ``league_id=None`` sweeps them all.
    """
    now = now or now_utc()
    threshold = now - timedelta(hours=settings.VOTING_WINDOW_HOURS)
    q = sa.select(Match.id).where(Match.status == "FINISHED", Match.date_time < threshold)
    if league_id is not None:
        q = q.where(Match.league_id == league_id)
    expired = list(db.scalars(q.order_by(Match.date_time, Match.id)).all())

    closed = []
    for match_id in expired:
        match = close_match(db, match_id, now=now, reason="voting_window_elapsed")
        if match.status == "COMPLETED":
            closed.append(match_id)
    return closed

def set_status(db: Session, match_id: str, status: str, *, actor_id: str, now: datetime | None = None) -> Match:
    """Admin override: any status may be written, COMPLETED goes through close."""
    if status not in MATCH_STATUSES:
        raise InvalidTransition(f"Unknown status {status}")

    match = get_match(db, match_id, for_update=True)
    prior = match.status

    if status == "COMPLETED":
        match = close_match(db, match_id, now=now, actor_id=actor_id, reason="admin_override")
        audit(db, actor_id, "match", match_id, "status_override", {"from": prior, "to": status})
        db.commit()
        return match

    match.status = status
    audit(db, actor_id, "match", match_id, "status_override", {"from": prior, "to": status})
    db.commit()
    logger.info("match %s status %s -> %s by %s", match_id, prior, status, actor_id)

    if status == "FINISHED" and prior != "FINISHED":
        notifications.dispatch(notifications.VOTING_OPEN, roster_ids(match), {
            "match_id": match.id,
            "league_id": match.league_id,
            "location": match.location_name,
            "deadline": voting_deadline(match).isoformat(),
        })
    return match

def voting_progress(db: Session, match_id: str) -> dict:
    match = get_match(db, match_id)
    votes_cast = db.execute(
        sa.select(sa.func.count()).select_from(MatchBallot).where(MatchBallot.match_id == match_id)
    ).scalar_one()
    return {
        "match_id": match.id,
        "status": match.status,
        "votes_cast": int(votes_cast),
        "roster_size": len(match.players),
        "confirmed_count": len(roster_ids(match, confirmed=True)),
        "deadline": voting_deadline(match),
    }
