from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from matchday.db.base import Base

LEAGUE_ROLES = ("OWNER", "ADMIN", "MEMBER")
ADMIN_ROLES = ("OWNER", "ADMIN")

class LeagueMember(Base):
    """Membership row owned by the league service; the match engine reads the
    role and statistics and advances the statistics when a match closes."""

    __tablename__ = "league_members"
    league_id: Mapped[str] = mapped_column(sa.String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(sa.String(36), primary_key=True)
    role: Mapped[str] = mapped_column(sa.Text, nullable=False, default="MEMBER", server_default="MEMBER")
    display_name: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    league_overall: Mapped[float] = mapped_column(sa.Float, nullable=False, default=5.0, server_default="5.0")
    matches_played: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0, server_default="0")

    honors_mvp: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0, server_default="0")
    honors_tronco: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0, server_default="0")
    honors_fantasma: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0, server_default="0")
    honors_prediction: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now())

    __table_args__ = (
        sa.CheckConstraint("role in ('OWNER','ADMIN','MEMBER')", name="ck_league_member_role"),
        sa.Index("ix_league_members_user", "user_id"),
    )
