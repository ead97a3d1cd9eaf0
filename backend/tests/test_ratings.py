import pytest

from matchday.services.ratings import (
    HonorAward,
    VoteRow,
    aggregate_votes,
    assign_honors,
    compute_trend,
    historical_average,
    locker_room,
    next_league_average,
    single_mvp,
)


def test_historical_average_backsolves_previous_mean():
    assert historical_average(6.0, 4, 8.0) == pytest.approx(16 / 3)
    assert compute_trend(8.0, 6.0, 4) == pytest.approx(2.67, abs=0.01)


def test_trend_is_zero_on_first_match():
    assert historical_average(7.5, 1, 7.5) == 7.5
    assert compute_trend(7.5, 7.5, 1) == 0


def test_trend_uses_baseline_without_stats():
    assert historical_average(None, None, 9.0) == 5.0
    assert compute_trend(9.0, None, 0) == 4.0


def test_next_league_average_folds_in_match():
    assert next_league_average(6.0, 3, 8.0) == pytest.approx(6.5)
    assert next_league_average(5.0, 0, 8.0) == 8.0
    # the trend derived after the fold equals rating minus the pre-match average
    assert compute_trend(8.0, next_league_average(6.0, 3, 8.0), 4) == pytest.approx(2.0)


def test_overall_mean_and_unscored_substats_excluded():
    votes = [
        VoteRow("v1", "t", 9, pace=8),
        VoteRow("v2", "t", 7, pace=0),
        VoteRow("v3", "t", 8, pace=6),
    ]
    out = aggregate_votes(votes)["t"]
    assert out.match_rating == 8.0
    assert out.sub_stats["pace"] == 7.0
    assert out.sub_stats["defense"] is None
    assert out.votes_received == 3


def test_self_vote_counts_for_overall():
    out = aggregate_votes([VoteRow("a", "a", 10), VoteRow("b", "a", 6)])
    assert out["a"].match_rating == 8.0


def test_aggregation_is_deterministic():
    votes = [VoteRow("v1", "x", 4, attack=3), VoteRow("v2", "y", 9), VoteRow("v3", "x", 6, attack=5)]
    assert aggregate_votes(votes) == aggregate_votes(list(reversed(votes)))


def test_honors_mvp_tronco_fantasma_oracle():
    awards = assign_honors({"a": 8.0, "b": 6.0, "c": 7.0}, no_show_ids=["d"], best_predictor_ids=["a"])
    assert awards == [
        HonorAward("a", "MVP"),
        HonorAward("b", "TRONCO"),
        HonorAward("d", "FANTASMA"),
        HonorAward("a", "ORACLE"),
    ]
    assert single_mvp(awards) == "a"


def test_mvp_tie_is_shared_and_no_single_mvp():
    awards = assign_honors({"a": 8.0, "b": 8.0, "c": 5.0})
    mvps = sorted(x.user_id for x in awards if x.honor_type == "MVP")
    assert mvps == ["a", "b"]
    assert single_mvp(awards) is None


def test_nobody_is_mvp_and_tronco_when_all_equal():
    awards = assign_honors({"a": 7.0, "b": 7.0})
    assert {a.honor_type for a in awards} == {"MVP"}


def test_no_ratings_only_fantasma():
    awards = assign_honors({}, no_show_ids=["x", "y"])
    assert [(a.user_id, a.honor_type) for a in awards] == [("x", "FANTASMA"), ("y", "FANTASMA")]


def test_locker_room_skips_blank_comments():
    quotes = locker_room([("a", "  crack "), ("b", "   "), ("c", None), ("z", "bien")], {"a": "Ana"})
    assert quotes == [
        {"target_id": "a", "target_name": "Ana", "comment": "crack"},
        {"target_id": "z", "target_name": "Jugador", "comment": "bien"},
    ]
