import logging
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from matchday.core.config import settings
from matchday.core.errors import AlreadyVoted, InvalidBallot, InvalidTransition, VotingTimeout
from matchday.core.security import now_utc
from matchday.models.match import SUB_STATS, Match
from matchday.models.vote import MatchBallot, MatchVote
from matchday.services.lifecycle import close_match, get_match, roster_ids, voting_deadline, voting_expired
from matchday.services.membership import display_names

logger = logging.getLogger(__name__)

def _has_voted(db: Session, match_id: str, voter_id: str) -> bool:
    ballot = db.execute(
        sa.select(MatchBallot.voter_id).where(MatchBallot.match_id == match_id, MatchBallot.voter_id == voter_id)
    ).first()
    if ballot is not None:
        return True
    vote = db.execute(
        sa.select(MatchVote.id).where(MatchVote.match_id == match_id, MatchVote.voter_id == voter_id).limit(1)
    ).first()
    return vote is not None

def _timeout(db: Session, match: Match, now: datetime) -> VotingTimeout:
    # a late ballot or read closes the match right away instead of waiting for the next list
    if match.status == "FINISHED":
        close_match(db, match.id, now=now, reason="voting_timeout")
    return VotingTimeout(f"Voting closed at {voting_deadline(match).isoformat()}")

def _scored(value: int | None) -> int | None:
    if not value:
        return None
    return int(value)

def submit_ballot(db: Session, match_id: str, voter_id: str, entries, *, now: datetime | None = None) -> dict:
    """Store a voter's whole ballot in one go.

    ``entries`` are ``BallotEntryIn``-shaped objects, one per target. The ballot
    row insert is the uniqueness guard: two racing submissions cannot both
    commit. Returns ``{"match_closed": bool}``.
    """
    now = now or now_utc()
    match = get_match(db, match_id)

    if _has_voted(db, match_id, voter_id):
        raise AlreadyVoted()

    if match.status == "COMPLETED":
        raise VotingTimeout()
    if match.status != "FINISHED":
        raise InvalidTransition(f"Voting is not open (status={match.status})")
    if voting_expired(match, now):
        raise _timeout(db, match, now)

    attendees = set(roster_ids(match, confirmed=True))
    if voter_id not in attendees:
        raise InvalidTransition("Only players who attended can vote")
    if not entries:
        raise InvalidBallot("At least one vote is required")

    seen = set()
    for entry in entries:
        if entry.voted_user_id in seen:
            raise InvalidBallot("Each player can only be rated once per ballot")
        if entry.voted_user_id not in attendees:
            raise InvalidBallot(f"Player {entry.voted_user_id} did not play this match")
        seen.add(entry.voted_user_id)

    try:
        db.add(MatchBallot(match_id=match_id, voter_id=voter_id, votes_cast=len(entries)))
        db.flush()
        for entry in entries:
            is_self = entry.voted_user_id == voter_id
            comment = (entry.comment or "").strip() or None
            db.add(MatchVote(
                match_id=match_id,
                league_id=match.league_id,
                voter_id=voter_id,
                target_id=entry.voted_user_id,
                overall=int(entry.overall),
                comment=comment[: settings.VOTE_COMMENT_MAX_LENGTH] if comment else None,
                **{stat: None if is_self else _scored(getattr(entry, stat, None)) for stat in SUB_STATS},
            ))
        db.flush()
    except IntegrityError:
        db.rollback()
        raise AlreadyVoted()
    db.commit()
    logger.info("ballot stored match=%s voter=%s votes=%d", match_id, voter_id, len(entries))

    match_closed = False
    if settings.VOTING_AUTO_CLOSE_WHEN_COMPLETE:
        voters = db.execute(
            sa.select(sa.func.count()).select_from(MatchBallot).where(MatchBallot.match_id == match_id)
        ).scalar_one()
        if int(voters) >= len(attendees):
            closed = close_match(db, match_id, now=now, reason="all_voted")
            match_closed = closed.status == "COMPLETED"
    return {"match_closed": match_closed}

def vote_list(db: Session, match_id: str, voter_id: str, *, now: datetime | None = None) -> dict:
    now = now or now_utc()
    match = get_match(db, match_id)
    if voting_expired(match, now):
        raise _timeout(db, match, now)

    confirmed = [p for p in match.players if p.has_confirmed]
    names = display_names(db, match.league_id, [p.user_id for p in confirmed])
    return {
        "match_id": match.id,
        "has_voted": _has_voted(db, match_id, voter_id),
        "deadline": voting_deadline(match),
        "players": [
            {"user_id": p.user_id, "display_name": names.get(p.user_id), "team": p.team}
            for p in confirmed
        ],
    }
