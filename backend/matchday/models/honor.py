from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from matchday.db.base import Base
from matchday.models.match import new_id

HONOR_TYPES = ("MVP", "TRONCO", "FANTASMA", "ORACLE", "FIGURE")

class Honor(Base):
    __tablename__ = "honors"

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=new_id)
    match_id: Mapped[str] = mapped_column(sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(sa.String(36), nullable=False)
    league_id: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)
    honor_type: Mapped[str] = mapped_column(sa.Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())

    __table_args__ = (
        sa.UniqueConstraint("match_id", "user_id", "honor_type", name="uq_honors_match_user_type"),
        sa.CheckConstraint("honor_type in ('MVP','TRONCO','FANTASMA','ORACLE','FIGURE')", name="ck_honor_type"),
        sa.Index("ix_honors_league_user", "league_id", "user_id"),
    )
