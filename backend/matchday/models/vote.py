from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from matchday.db.base import Base
from matchday.models.match import new_id

class MatchBallot(Base):
    """One row per (match, voter): the insert that makes a ballot one-shot."""

    __tablename__ = "match_ballots"
    match_id: Mapped[str] = mapped_column(sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True)
    voter_id: Mapped[str] = mapped_column(sa.String(36), primary_key=True)
    votes_cast: Mapped[int] = mapped_column(sa.SmallInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())

class MatchVote(Base):
    __tablename__ = "match_votes"

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=new_id)
    match_id: Mapped[str] = mapped_column(sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    league_id: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)
    voter_id: Mapped[str] = mapped_column(sa.String(36), nullable=False)
    target_id: Mapped[str] = mapped_column(sa.String(36), nullable=False)

    overall: Mapped[int] = mapped_column(sa.SmallInteger, nullable=False)
    # NULL = not scored (0 on the wire, or a self-vote)
    pace: Mapped[int | None] = mapped_column(sa.SmallInteger, nullable=True)
    defense: Mapped[int | None] = mapped_column(sa.SmallInteger, nullable=True)
    technique: Mapped[int | None] = mapped_column(sa.SmallInteger, nullable=True)
    physical: Mapped[int | None] = mapped_column(sa.SmallInteger, nullable=True)
    attack: Mapped[int | None] = mapped_column(sa.SmallInteger, nullable=True)

    comment: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())

    __table_args__ = (
        sa.UniqueConstraint("match_id", "voter_id", "target_id", name="uq_match_votes_voter_target"),
        sa.CheckConstraint("overall between 1 and 10", name="ck_match_votes_overall"),
        sa.Index("ix_match_votes_match_target", "match_id", "target_id"),
    )
