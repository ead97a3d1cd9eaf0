import logging

from matchday.schemas.vote import BallotEntryIn
from matchday.services import lifecycle, notifications, voting
from tests.testkit import league_with_players, seed_match


def test_dispatch_skips_empty_ids(notices):
    delivered = notifications.dispatch(notifications.VOTING_OPEN, ["a", None, "", "b"], {"match_id": "m"})
    assert delivered == 2
    assert [(n.user_id, n.data) for n in notices] == [("a", {"match_id": "m"}), ("b", {"match_id": "m"})]


def test_failing_transport_is_logged_and_swallowed(caplog):
    def broken(notice):
        raise ConnectionError("push gateway down")

    previous = notifications.set_transport(broken)
    try:
        with caplog.at_level(logging.WARNING, logger="matchday.services.notifications"):
            delivered = notifications.dispatch(notifications.HONOR_AWARDED, ["a", "b"])
    finally:
        notifications.set_transport(previous)

    assert delivered == 0
    assert sum("failed" in r.getMessage() for r in caplog.records) == 2


def test_close_survives_notification_failure(db):
    league_id, admin_id, (p1, p2) = league_with_players(db, 2)
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True), (p2, "B", True)], status="FINISHED")
    voting.submit_ballot(db, match.id, p1, [BallotEntryIn(voted_user_id=p2, overall=8)])

    def broken(notice):
        raise RuntimeError("boom")

    previous = notifications.set_transport(broken)
    try:
        closed = lifecycle.close_match(db, match.id)
    finally:
        notifications.set_transport(previous)
    assert closed.status == "COMPLETED"
    assert closed.mvp_id == p2


def test_set_transport_none_restores_default():
    previous = notifications.set_transport(lambda notice: None)
    notifications.set_transport(None)
    try:
        assert notifications.dispatch(notifications.DUEL_GENERATED, ["x"]) == 1
    finally:
        notifications.set_transport(previous)
