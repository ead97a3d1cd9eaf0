from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from matchday.db.base import Base
from matchday.models.match import new_id

class Duel(Base):
    __tablename__ = "duels"

    id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, default=new_id)
    match_id: Mapped[str] = mapped_column(sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, unique=True)
    challenger_id: Mapped[str] = mapped_column(sa.String(36), nullable=False)
    rival_id: Mapped[str] = mapped_column(sa.String(36), nullable=False)
    # resolved by the results process from the finalized match, read back here
    winner_id: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)
    status: Mapped[str] = mapped_column(sa.Text, nullable=False, default="PENDING", server_default="PENDING")
    rating_gap: Mapped[float] = mapped_column(sa.Float, nullable=False, default=0.0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())

    __table_args__ = (
        sa.CheckConstraint("challenger_id <> rival_id", name="ck_duel_distinct_players"),
        sa.CheckConstraint("status in ('PENDING','ACTIVE','COMPLETED','DRAW')", name="ck_duel_status"),
    )
