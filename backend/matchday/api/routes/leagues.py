from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchday.api.deps import get_current_user
from matchday.db.session import get_db
from matchday.schemas.match import MatchCreateIn, MatchListRowOut, MatchOut, NextMatchOut, RecentResultOut
from matchday.schemas.vote import PendingVoteOut
from matchday.services import results
from matchday.services.lifecycle import create_match
from matchday.services.membership import require_league_admin, require_member

router = APIRouter()

@router.post("/{league_id}/matches", response_model=MatchOut, status_code=201)
def create_league_match(league_id: str, payload: MatchCreateIn, current=Depends(get_current_user), db: Session = Depends(get_db)):
    require_league_admin(db, league_id, current.id)
    match = create_match(
        db,
        league_id=league_id,
        admin_id=current.id,
        location=payload.location_name,
        date_time=payload.date_time,
        price=payload.price_per_player,
        players=payload.players,
        is_external=payload.is_external,
    )
    return MatchOut(**results.match_summary(match))

@router.get("/{league_id}/matches", response_model=list[MatchListRowOut])
def league_matches(league_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    require_member(db, league_id, current.id)
    return [MatchListRowOut(**row) for row in results.list_matches(db, league_id)]

@router.get("/{league_id}/matches/next", response_model=NextMatchOut | None)
def league_next_match(league_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    require_member(db, league_id, current.id)
    row = results.next_match(db, league_id, current.id)
    if row is None:
        return None
    return NextMatchOut(**row)

@router.get("/{league_id}/voting", response_model=list[PendingVoteOut])
def league_pending_votes(league_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    require_member(db, league_id, current.id)
    return [PendingVoteOut(**row) for row in results.pending_votes(db, league_id, current.id)]

@router.get("/{league_id}/results/recent", response_model=list[RecentResultOut])
def league_recent_results(league_id: str, current=Depends(get_current_user), db: Session = Depends(get_db)):
    require_member(db, league_id, current.id)
    return [RecentResultOut(**row) for row in results.recent_results(db, league_id, current.id)]
