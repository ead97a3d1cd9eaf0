from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchday.api.deps import get_current_user
from matchday.core.errors import Forbidden
from matchday.db.session import get_db
from matchday.models.match import Match
from matchday.schemas.duel import DuelOut
from matchday.schemas.match import (
    MatchCreateIn,
    MatchDetailOut,
    MatchOut,
    MatchResultsOut,
    MatchStatusIn,
    MatchUpdateIn,
    VotingProgressOut,
)
from matchday.schemas.vote import BallotIn, BallotOut, VoteListOut
from matchday.services import duels, lifecycle, results, voting
from matchday.services.membership import require_match_admin, require_member

router = APIRouter()

def _assert_can_view(db: Session, match: Match, user_id: str):
    if match.league_id is not None:
        require_member(db, match.league_id, user_id)
        return
    if user_id != match.admin_id and user_id not in lifecycle.roster_ids(match):
        raise Forbidden("Not part of this match")

@router.post("", response_model=MatchOut, status_code=201)
def create_external_match(payload: MatchCreateIn, current=Depends(get_current_user), db: Session = Depends(get_db)):
    # fixtures outside any league belong to whoever schedules them
    match = lifecycle.create_match(
        db,
        league_id=None,
        admin_id=current.id,
        location=payload.location_name,
        date_time=payload.date_time,
        price=payload.price_per_player,
        players=payload.players,
        is_external=True,
    )
    return MatchOut(**results.match_summary(match))

@router.get("/{match_id}", response_model=MatchDetailOut)
def match_detail(match_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    _assert_can_view(db, lifecycle.get_match(db, match_id), current.id)
    return MatchDetailOut(**results.match_detail(db, match_id))

@router.put("/{match_id}", response_model=MatchOut)
def update_match(match_id: str, payload: MatchUpdateIn, current=Depends(get_current_user), db: Session = Depends(get_db)):
    require_match_admin(db, lifecycle.get_match(db, match_id), current.id)
    match = lifecycle.update_match(
        db,
        match_id,
        actor_id=current.id,
        location=payload.location_name,
        date_time=payload.date_time,
        price=payload.price_per_player,
        players=payload.players,
        team_a_score=payload.team_a_score,
        team_b_score=payload.team_b_score,
    )
    return MatchOut(**results.match_summary(match))

@router.put("/{match_id}/status", response_model=MatchOut)
def set_match_status(match_id: str, payload: MatchStatusIn, current=Depends(get_current_user), db: Session = Depends(get_db)):
    require_match_admin(db, lifecycle.get_match(db, match_id), current.id)
    match = lifecycle.set_status(db, match_id, payload.status, actor_id=current.id)
    return MatchOut(**results.match_summary(match))

@router.post("/{match_id}/confirm")
def confirm_attendance(match_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    lifecycle.set_attendance(db, match_id, current.id, True)
    return {"ok": True, "has_confirmed": True}

@router.post("/{match_id}/unconfirm")
def unconfirm_attendance(match_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    lifecycle.set_attendance(db, match_id, current.id, False)
    return {"ok": True, "has_confirmed": False}

@router.get("/{match_id}/vote-list", response_model=VoteListOut)
def vote_list(match_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    _assert_can_view(db, lifecycle.get_match(db, match_id), current.id)
    return VoteListOut(**voting.vote_list(db, match_id, current.id))

@router.post("/{match_id}/votes", response_model=BallotOut)
def submit_votes(match_id: str, payload: BallotIn, current=Depends(get_current_user), db: Session = Depends(get_db)):
    outcome = voting.submit_ballot(db, match_id, current.id, payload.votes)
    return BallotOut(**outcome)

@router.get("/{match_id}/voting-progress", response_model=VotingProgressOut)
def voting_progress(match_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    require_match_admin(db, lifecycle.get_match(db, match_id), current.id)
    return VotingProgressOut(**lifecycle.voting_progress(db, match_id))

@router.get("/{match_id}/results", response_model=MatchResultsOut)
def match_results(match_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    _assert_can_view(db, lifecycle.get_match(db, match_id), current.id)
    return MatchResultsOut(**results.match_results(db, match_id))

@router.post("/{match_id}/duel", response_model=DuelOut, status_code=201)
def generate_duel(match_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    require_match_admin(db, lifecycle.get_match(db, match_id), current.id)
    duels.generate_duel(db, match_id, actor_id=current.id)
    return DuelOut(**duels.duel_detail(db, match_id))

@router.get("/{match_id}/duel", response_model=DuelOut)
def get_duel(match_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    _assert_can_view(db, lifecycle.get_match(db, match_id), current.id)
    return DuelOut(**duels.duel_detail(db, match_id))
