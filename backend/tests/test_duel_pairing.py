import random

import pytest

from matchday.core.errors import NoCompatiblePair, SelectionFailure
from matchday.services.duels import DuelCandidate, candidate_pairs, pair_key, select_duel_pair


def _players(*specs):
    return [DuelCandidate(user_id=uid, rating=rating, team=team) for uid, rating, team in specs]


def test_compatibility_prefers_closest_ratings():
    players = _players(("a", 5.0, "A"), ("b", 5.5, "B"), ("c", 7.5, "B"))
    pair = select_duel_pair(players, max_gap=3.0, pool_size=1)
    assert {pair.challenger.user_id, pair.rival.user_id} == {"a", "b"}
    assert pair.compatibility == pytest.approx(0.95)
    assert pair.gap == 0.5


def test_opposite_teams_are_preferred():
    players = _players(("a", 6.0, "A"), ("b", 6.0, "A"), ("c", 6.4, "B"))
    pairs = candidate_pairs(players, max_gap=3.0)
    assert pairs[0].cross_team is True
    assert pair_key(pairs[0].challenger.user_id, pairs[0].rival.user_id) == pair_key("a", "c")


def test_pairs_over_the_gap_are_dropped():
    players = _players(("a", 2.0, "A"), ("b", 9.0, "B"))
    with pytest.raises(NoCompatiblePair):
        select_duel_pair(players, max_gap=3.0)


def test_previous_pair_is_excluded():
    players = _players(("a", 6.0, "A"), ("b", 6.0, "B"), ("c", 7.0, "B"))
    pair = select_duel_pair(players, max_gap=3.0, excluded_keys={pair_key("a", "b")}, pool_size=1)
    assert pair_key(pair.challenger.user_id, pair.rival.user_id) != pair_key("a", "b")


def test_only_pair_excluded_means_no_pair():
    players = _players(("a", 6.0, "A"), ("b", 6.0, "B"))
    with pytest.raises(NoCompatiblePair):
        select_duel_pair(players, max_gap=3.0, excluded_keys={pair_key("b", "a")})


def test_no_self_pairs():
    players = _players(("a", 6.0, "A"), ("a", 6.0, "B"))
    assert candidate_pairs(players, max_gap=3.0) == []


def test_random_pick_stays_in_pool():
    players = _players(("a", 5.0, "A"), ("b", 5.1, "B"), ("c", 5.2, "A"), ("d", 5.3, "B"))
    top = candidate_pairs(players, max_gap=3.0)[:2]
    picks = {
        pair_key(p.challenger.user_id, p.rival.user_id)
        for p in (select_duel_pair(players, max_gap=3.0, pool_size=2, rng=random.Random(seed)) for seed in range(20))
    }
    assert picks <= {pair_key(p.challenger.user_id, p.rival.user_id) for p in top}


def test_missing_stats_while_scoring_is_selection_failure():
    players = _players(("a", 6.0, "A"), ("b", None, "B"))
    with pytest.raises(SelectionFailure):
        select_duel_pair(players, max_gap=3.0)
