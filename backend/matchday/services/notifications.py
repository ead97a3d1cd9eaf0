"""Fire-and-forget lifecycle notices.

Delivery belongs to the notification service; this module only hands notices
to a transport. A failing transport is logged and never propagates into the
operation that emitted the notice.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

MATCH_CONVENED = "MATCH_CONVENED"
VOTING_OPEN = "VOTING_OPEN"
VOTING_CLOSED = "VOTING_CLOSED"
HONOR_AWARDED = "HONOR_AWARDED"
DUEL_GENERATED = "DUEL_GENERATED"


@dataclass(frozen=True)
class Notice:
    event: str
    user_id: str
    data: dict = field(default_factory=dict)


Transport = Callable[[Notice], None]


def _log_transport(notice: Notice) -> None:
    logger.info("notice %s -> user=%s data=%s", notice.event, notice.user_id, notice.data)


_transport: Transport = _log_transport


def set_transport(transport: Transport | None) -> Transport:
    """Install a transport (``None`` restores the logging one); returns the previous."""
    global _transport
    previous = _transport
    _transport = transport or _log_transport
    return previous


def dispatch(event: str, user_ids: Iterable[str | None], data: dict | None = None) -> int:
    delivered = 0
    for user_id in user_ids:
        if not user_id:
            continue
        try:
            _transport(Notice(event=event, user_id=user_id, data=dict(data or {})))
            delivered += 1
        except Exception:
            logger.warning("notice %s for user %s failed", event, user_id, exc_info=True)
    return delivered
