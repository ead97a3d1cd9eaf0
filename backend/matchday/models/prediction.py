from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from matchday.db.base import Base

class MatchPredictionScore(Base):
    """Points earned in the prediction game for one fixture.

    Written by the prediction service; the match engine only reads it.
    """

    __tablename__ = "match_prediction_scores"
    match_id: Mapped[str] = mapped_column(sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[str] = mapped_column(sa.String(36), primary_key=True)
    points: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0, server_default="0")
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
