from fastapi import APIRouter
from matchday.api.routes import leagues, matches

router = APIRouter()
router.include_router(leagues.router, prefix="/leagues", tags=["leagues"])
router.include_router(matches.router, prefix="/matches", tags=["matches"])
