from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship
from matchday.db.base import Base

MATCH_STATUSES = ("OPEN", "ACTIVE", "FINISHED", "COMPLETED", "CANCELLED")
TERMINAL_STATUSES = ("COMPLETED", "CANCELLED")
TEAMS = ("A", "B")
SUB_STATS = ("pace", "defense", "technique", "physical", "attack")

def new_id() -> str:
    return str(uuid4())

class Match(Base):
    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=new_id)

    league_id: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)
    admin_id: Mapped[str] = mapped_column(sa.String(36), nullable=False)
    is_external: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False, server_default=sa.false())

    location_name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    date_time: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    price_per_player: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False, default=0, server_default="0")

    status: Mapped[str] = mapped_column(sa.Text, nullable=False, default="OPEN", server_default="OPEN")  # OPEN/ACTIVE/FINISHED/COMPLETED/CANCELLED

    team_a_score: Mapped[int | None] = mapped_column(sa.SmallInteger, nullable=True)
    team_b_score: Mapped[int | None] = mapped_column(sa.SmallInteger, nullable=True)

    mvp_id: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now())

    players: Mapped[list["MatchPlayer"]] = relationship(
        back_populates="match",
        cascade="all, delete-orphan",
        order_by=lambda: [MatchPlayer.position, MatchPlayer.user_id],
        lazy="selectin",
    )

    __table_args__ = (
        sa.Index("ix_matches_league_status_date", "league_id", "status", "date_time"),
        sa.CheckConstraint("status in ('OPEN','ACTIVE','FINISHED','COMPLETED','CANCELLED')", name="ck_match_status"),
        sa.CheckConstraint("team_a_score IS NULL OR team_a_score >= 0", name="ck_match_team_a_score"),
        sa.CheckConstraint("team_b_score IS NULL OR team_b_score >= 0", name="ck_match_team_b_score"),
    )

class MatchPlayer(Base):
    __tablename__ = "match_players"
    match_id: Mapped[str] = mapped_column(sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[str] = mapped_column(sa.String(36), primary_key=True)
    team: Mapped[str] = mapped_column(sa.Text, nullable=False, default="A", server_default="A")
    position: Mapped[int] = mapped_column(sa.SmallInteger, nullable=False, default=0, server_default="0")
    has_confirmed: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False, server_default=sa.false())

    # filled in when the match closes
    match_rating: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    match_pace: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    match_defense: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    match_technique: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    match_physical: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    match_attack: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    match_trend: Mapped[float | None] = mapped_column(sa.Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())

    match: Mapped[Match] = relationship(back_populates="players")

    __table_args__ = (
        sa.CheckConstraint("team in ('A','B')", name="ck_match_player_team"),
        sa.Index("ix_match_players_user_match", "user_id", "match_id"),
    )
