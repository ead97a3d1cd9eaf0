from pydantic import BaseModel

class DuelPlayerOut(BaseModel):
    user_id: str
    display_name: str | None
    league_overall: float
    honors_mvp: int
    team: str  # A / B / UNASSIGNED

class DuelOut(BaseModel):
    id: str
    match_id: str
    status: str
    rating_gap: float
    winner_id: str | None
    challenger: DuelPlayerOut
    rival: DuelPlayerOut
