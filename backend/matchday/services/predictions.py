import sqlalchemy as sa
from sqlalchemy.orm import Session

from matchday.models.prediction import MatchPredictionScore

def prediction_points(db: Session, match_id: str) -> dict[str, int]:
    rows = db.execute(
        sa.select(MatchPredictionScore.user_id, MatchPredictionScore.points)
        .where(MatchPredictionScore.match_id == match_id)
        .order_by(MatchPredictionScore.points.desc(), MatchPredictionScore.user_id)
    ).all()
    return {user_id: int(points or 0) for user_id, points in rows}

def best_predictors(db: Session, match_id: str) -> list[str]:
    # every player tied at the best score; nobody when no one scored
    points = prediction_points(db, match_id)
    if not points:
        return []
    best = max(points.values())
    if best <= 0:
        return []
    return sorted(uid for uid, p in points.items() if p == best)

def leaderboard(db: Session, match_id: str) -> list[dict]:
    return [{"user_id": uid, "points": p} for uid, p in prediction_points(db, match_id).items()]
