from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from matchday.core.config import settings

class BallotEntryIn(BaseModel):
    voted_user_id: str = Field(..., min_length=1)
    overall: int = Field(..., ge=1, le=10)
    # 0 means "not scored" and is left out of the averages
    pace: int | None = Field(None, ge=0, le=10)
    defense: int | None = Field(None, ge=0, le=10)
    technique: int | None = Field(None, ge=0, le=10)
    physical: int | None = Field(None, ge=0, le=10)
    attack: int | None = Field(None, ge=0, le=10)
    comment: str | None = None

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: str | None) -> str | None:
        if v is not None and len(v) > settings.VOTE_COMMENT_MAX_LENGTH:
            raise ValueError(f"Comment must be at most {settings.VOTE_COMMENT_MAX_LENGTH} characters")
        return v

class BallotIn(BaseModel):
    votes: list[BallotEntryIn] = Field(..., min_length=1)

    @field_validator("votes")
    @classmethod
    def validate_targets(cls, v: list[BallotEntryIn]) -> list[BallotEntryIn]:
        targets = [e.voted_user_id for e in v]
        if len(targets) != len(set(targets)):
            raise ValueError("Each player can only be rated once per ballot")
        return v

class BallotOut(BaseModel):
    ok: bool = True
    match_closed: bool

class VoteListPlayerOut(BaseModel):
    user_id: str
    display_name: str | None
    team: str

class VoteListOut(BaseModel):
    match_id: str
    has_voted: bool
    deadline: datetime
    players: list[VoteListPlayerOut]

class PendingVoteOut(BaseModel):
    id: str
    location_name: str
    date_time: datetime
    status: str
    voting_deadline: datetime
    has_voted: bool
