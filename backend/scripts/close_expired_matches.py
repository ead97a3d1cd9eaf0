import logging

from matchday.core.config import settings
from matchday.core.logging_config import setup_logging
from matchday.db.session import SessionLocal
from matchday.services.lifecycle import close_expired_matches

logger = logging.getLogger("matchday.scripts.close_expired_matches")


def main():
    setup_logging(settings.LOG_LEVEL)
    db = SessionLocal()
    try:
        closed = close_expired_matches(db)
        db.commit()
        logger.info("sweep closed %d expired matches", len(closed))
        print(f"ok: partidos cerrados={len(closed)}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
