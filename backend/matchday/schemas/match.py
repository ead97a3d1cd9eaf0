from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

MatchStatus = Literal["OPEN", "ACTIVE", "FINISHED", "COMPLETED", "CANCELLED"]

class RosterPlayerIn(BaseModel):
    user_id: str = Field(..., min_length=1)
    team: Literal["A", "B"] = "A"

def _unique_roster(v: list[RosterPlayerIn] | None) -> list[RosterPlayerIn] | None:
    if v is None:
        return v
    ids = [p.user_id for p in v]
    if len(ids) != len(set(ids)):
        raise ValueError("Players must be unique")
    return v

class MatchCreateIn(BaseModel):
    location_name: str = Field(..., min_length=1, max_length=200)
    date_time: datetime
    price_per_player: float = Field(0, ge=0)
    is_external: bool = False
    players: list[RosterPlayerIn] = Field(default_factory=list)

    @field_validator("players")
    @classmethod
    def validate_players(cls, v):
        return _unique_roster(v)

class MatchUpdateIn(BaseModel):
    location_name: str | None = Field(None, min_length=1, max_length=200)
    date_time: datetime | None = None
    price_per_player: float | None = Field(None, ge=0)
    players: list[RosterPlayerIn] | None = None
    team_a_score: int | None = Field(None, ge=0)
    team_b_score: int | None = Field(None, ge=0)

    @field_validator("players")
    @classmethod
    def validate_players(cls, v):
        return _unique_roster(v)

class MatchStatusIn(BaseModel):
    status: MatchStatus

class MatchOut(BaseModel):
    id: str
    league_id: str | None
    admin_id: str
    is_external: bool
    location_name: str
    date_time: datetime
    price_per_player: float
    status: str
    team_a_score: int | None = None
    team_b_score: int | None = None
    mvp_id: str | None = None
    closed_at: datetime | None = None

class MatchListRowOut(MatchOut):
    players_count: int

class NextMatchOut(MatchOut):
    user_status: Literal["CONFIRMED", "PENDING", "NOT_CONVOKED"]

class MatchPlayerOut(BaseModel):
    user_id: str
    display_name: str | None
    team: str
    position: int
    has_confirmed: bool
    has_voted: bool
    match_rating: float | None
    match_pace: float | None
    match_defense: float | None
    match_technique: float | None
    match_physical: float | None
    match_attack: float | None
    trend: float | None

class CommentOut(BaseModel):
    target_id: str
    target_name: str
    comment: str

class HonorOut(BaseModel):
    user_id: str
    honor_type: str

class PredictionRowOut(BaseModel):
    user_id: str
    points: int

class MatchDetailOut(MatchOut):
    voting_deadline: datetime
    players: list[MatchPlayerOut]
    comments: list[CommentOut]
    honors: list[HonorOut]

class MatchResultsOut(MatchOut):
    players: list[MatchPlayerOut]
    comments: list[CommentOut]
    honors: list[HonorOut]
    predictions: list[PredictionRowOut]

class RecentResultOut(MatchOut):
    match_rating: float | None
    trend: float | None
    is_mvp: bool

class VotingProgressOut(BaseModel):
    match_id: str
    status: str
    votes_cast: int
    roster_size: int
    confirmed_count: int
    deadline: datetime
