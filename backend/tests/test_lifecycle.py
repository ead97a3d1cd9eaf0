from datetime import timedelta

import pytest
import sqlalchemy as sa

from matchday.core.errors import InvalidTransition, NotFound
from matchday.core.security import now_utc
from matchday.models.honor import Honor
from matchday.models.league_member import LeagueMember
from matchday.schemas.match import RosterPlayerIn
from matchday.schemas.vote import BallotEntryIn
from matchday.services import lifecycle, voting
from matchday.services.notifications import HONOR_AWARDED, MATCH_CONVENED, VOTING_CLOSED, VOTING_OPEN
from tests.testkit import hours_ago, league_with_players, seed_match, seed_prediction


def _entries(*pairs):
    return [BallotEntryIn(voted_user_id=uid, overall=overall) for uid, overall in pairs]


def _member(db, league_id, user_id) -> LeagueMember:
    db.expire_all()
    return db.get(LeagueMember, (league_id, user_id))


def _honors(db, match_id):
    rows = db.execute(sa.select(Honor.user_id, Honor.honor_type).where(Honor.match_id == match_id)).all()
    return {(u, h) for u, h in rows}


def test_create_match_convenes_roster(db, notices):
    league_id, admin_id, (p1, p2) = league_with_players(db, 2)
    match = lifecycle.create_match(
        db,
        league_id=league_id,
        admin_id=admin_id,
        location=" Cancha 5 ",
        date_time=now_utc() + timedelta(days=2),
        players=[RosterPlayerIn(user_id=p1, team="A"), RosterPlayerIn(user_id=p2, team="B")],
    )
    assert match.status == "OPEN"
    assert match.location_name == "Cancha 5"
    assert [(p.user_id, p.team, p.has_confirmed) for p in match.players] == [(p1, "A", False), (p2, "B", False)]
    assert sorted(n.user_id for n in notices if n.event == MATCH_CONVENED) == sorted([p1, p2])


def test_external_match_puts_everyone_on_team_a(db):
    match = lifecycle.create_match(
        db,
        league_id=None,
        admin_id="owner",
        location="Parque",
        date_time=now_utc(),
        players=[RosterPlayerIn(user_id="x", team="B")],
        is_external=True,
    )
    assert match.players[0].team == "A"


def test_attendance_only_while_open(db):
    league_id, admin_id, (p1, p2) = league_with_players(db, 2)
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", False), (p2, "B", False)])

    updated = lifecycle.set_attendance(db, match.id, p1, True)
    assert {p.user_id: p.has_confirmed for p in updated.players}[p1] is True

    lifecycle.set_status(db, match.id, "ACTIVE", actor_id=admin_id)
    with pytest.raises(InvalidTransition):
        lifecycle.set_attendance(db, match.id, p2, True)
    assert {p.user_id: p.has_confirmed for p in lifecycle.get_match(db, match.id).players}[p2] is False


def test_attendance_requires_roster_membership(db):
    league_id, admin_id, (p1,) = league_with_players(db, 1)
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", False)])
    with pytest.raises(NotFound):
        lifecycle.set_attendance(db, match.id, "stranger", True)


def test_roster_edits_only_while_open_and_scores_while_played(db):
    league_id, admin_id, (p1, p2) = league_with_players(db, 2)
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True)], status="OPEN")

    with pytest.raises(InvalidTransition):
        lifecycle.update_match(db, match.id, actor_id=admin_id, team_a_score=3)

    lifecycle.update_match(db, match.id, actor_id=admin_id, players=[RosterPlayerIn(user_id=p1, team="B"), RosterPlayerIn(user_id=p2)])
    match = lifecycle.get_match(db, match.id)
    # confirmation survives the roster edit
    assert [(p.user_id, p.team, p.has_confirmed) for p in match.players] == [(p1, "B", True), (p2, "A", False)]

    lifecycle.set_status(db, match.id, "ACTIVE", actor_id=admin_id)
    with pytest.raises(InvalidTransition):
        lifecycle.update_match(db, match.id, actor_id=admin_id, players=[RosterPlayerIn(user_id=p1)])
    updated = lifecycle.update_match(db, match.id, actor_id=admin_id, team_a_score=3, team_b_score=2)
    assert (updated.team_a_score, updated.team_b_score) == (3, 2)


def test_finished_status_opens_voting(db, notices):
    league_id, admin_id, (p1, p2) = league_with_players(db, 2)
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True), (p2, "B", True)], status="ACTIVE")
    lifecycle.set_status(db, match.id, "FINISHED", actor_id=admin_id)
    assert sorted(n.user_id for n in notices if n.event == VOTING_OPEN) == sorted([p1, p2])


def test_unknown_status_is_rejected(db):
    league_id, admin_id, (p1,) = league_with_players(db, 1)
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True)])
    with pytest.raises(InvalidTransition):
        lifecycle.set_status(db, match.id, "PAUSED", actor_id=admin_id)


def test_close_is_idempotent(db):
    league_id, admin_id, (p1, p2) = league_with_players(db, 2)
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True), (p2, "B", True)], status="FINISHED")
    voting.submit_ballot(db, match.id, p1, _entries((p1, 7), (p2, 9)))

    first = lifecycle.close_match(db, match.id)
    ratings = {p.user_id: p.match_rating for p in first.players}
    assert first.status == "COMPLETED"
    assert _member(db, league_id, p2).matches_played == 1

    second = lifecycle.close_match(db, match.id)
    assert second.status == "COMPLETED"
    assert {p.user_id: p.match_rating for p in second.players} == ratings
    assert _member(db, league_id, p2).matches_played == 1


@pytest.mark.regression
def test_reclosing_after_admin_reopen_does_not_double_count(db):
    league_id, admin_id, (p1, p2) = league_with_players(db, 2)
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True), (p2, "B", True)], status="FINISHED")
    voting.submit_ballot(db, match.id, p1, _entries((p1, 6), (p2, 8)))
    lifecycle.close_match(db, match.id)

    lifecycle.set_status(db, match.id, "FINISHED", actor_id=admin_id)
    closed = lifecycle.set_status(db, match.id, "COMPLETED", actor_id=admin_id)
    assert closed.status == "COMPLETED"
    assert _member(db, league_id, p1).matches_played == 1
    assert _honors(db, match.id) == {(p2, "MVP"), (p1, "TRONCO")}


@pytest.mark.regression
def test_failed_aggregation_leaves_match_finished(db, monkeypatch):
    league_id, admin_id, (p1, p2) = league_with_players(db, 2)
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True), (p2, "B", True)], status="FINISHED")
    voting.submit_ballot(db, match.id, p1, _entries((p1, 7), (p2, 9)))

    def broken(*args, **kwargs):
        raise RuntimeError("honor table unavailable")

    monkeypatch.setattr(lifecycle, "assign_honors", broken)
    with pytest.raises(RuntimeError):
        lifecycle.close_match(db, match.id)

    stored = lifecycle.get_match(db, match.id)
    assert stored.status == "FINISHED"
    assert stored.closed_at is None
    assert [p.match_rating for p in stored.players] == [None, None]
    assert _honors(db, match.id) == set()
    assert _member(db, league_id, p1).matches_played == 0


def test_close_with_zero_votes_awards_fantasma(db, notices):
    league_id, admin_id, (p1, p2, p3) = league_with_players(db, 3)
    match = seed_match(
        db, league_id=league_id, admin_id=admin_id,
        players=[(p1, "A", True), (p2, "B", True), (p3, "B", False)],
        status="FINISHED",
    )
    closed = lifecycle.close_match(db, match.id)

    assert closed.status == "COMPLETED"
    assert closed.mvp_id is None
    by_user = {p.user_id: p for p in closed.players}
    assert by_user[p1].match_rating == 5.0
    assert by_user[p3].match_rating is None
    assert _honors(db, match.id) == {(p3, "FANTASMA")}
    assert _member(db, league_id, p3).honors_fantasma == 1
    assert sorted(n.user_id for n in notices if n.event == VOTING_CLOSED) == sorted([p1, p2, p3])
    assert [n.user_id for n in notices if n.event == HONOR_AWARDED] == [p3]


def test_mvp_and_oracle_on_the_same_player(db):
    league_id, admin_id, (p1, p2, p3) = league_with_players(db, 3)
    match = seed_match(
        db, league_id=league_id, admin_id=admin_id,
        players=[(p1, "A", True), (p2, "B", True), (p3, "B", True)],
        status="FINISHED",
    )
    seed_prediction(db, match.id, p1, 5)
    seed_prediction(db, match.id, p2, 3)
    voting.submit_ballot(db, match.id, p2, _entries((p1, 9), (p2, 6), (p3, 7)))

    closed = lifecycle.close_match(db, match.id)
    assert closed.mvp_id == p1
    honors = _honors(db, match.id)
    assert {(p1, "MVP"), (p1, "ORACLE"), (p2, "TRONCO")} <= honors
    member = _member(db, league_id, p1)
    assert (member.honors_mvp, member.honors_prediction) == (1, 1)


def test_trend_persisted_from_post_match_stats(db):
    league_id, admin_id, (p1, p2) = league_with_players(db, 2, ratings=[6.0, 5.0])
    match = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True), (p2, "B", True)], status="FINISHED")
    voting.submit_ballot(db, match.id, p2, _entries((p1, 8)))

    closed = lifecycle.close_match(db, match.id)
    by_user = {p.user_id: p for p in closed.players}
    # 6.0 over 3 matches, then an 8.0
    assert _member(db, league_id, p1).league_overall == pytest.approx(6.5)
    assert by_user[p1].match_trend == pytest.approx(2.0)
    # p2 got no votes: baseline rating and no trend
    assert by_user[p2].match_rating == 5.0
    assert by_user[p2].match_trend is None


def test_lazy_close_of_expired_matches(db):
    league_id, admin_id, (p1,) = league_with_players(db, 1)
    expired = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True)], status="FINISHED", date_time=hours_ago(30))
    fresh = seed_match(db, league_id=league_id, admin_id=admin_id, players=[(p1, "A", True)], status="FINISHED", date_time=hours_ago(2))

    closed = lifecycle.close_expired_matches(db, league_id=league_id)
    assert closed == [expired.id]
    assert lifecycle.get_match(db, expired.id).status == "COMPLETED"
    assert lifecycle.get_match(db, fresh.id).status == "FINISHED"


def test_voting_progress_counts_ballots(db):
    league_id, admin_id, (p1, p2, p3) = league_with_players(db, 3)
    match = seed_match(
        db, league_id=league_id, admin_id=admin_id,
        players=[(p1, "A", True), (p2, "B", True), (p3, "B", False)],
        status="FINISHED",
    )
    voting.submit_ballot(db, match.id, p1, _entries((p2, 7)))
    progress = lifecycle.voting_progress(db, match.id)
    assert (progress["votes_cast"], progress["roster_size"], progress["confirmed_count"]) == (1, 3, 2)
