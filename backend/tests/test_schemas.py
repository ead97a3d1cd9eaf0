import pytest
from pydantic import ValidationError

from matchday.schemas.match import MatchCreateIn, MatchStatusIn
from matchday.schemas.vote import BallotEntryIn, BallotIn


def test_overall_is_mandatory_and_bounded():
    with pytest.raises(ValidationError):
        BallotEntryIn(voted_user_id="a", overall=0)
    with pytest.raises(ValidationError):
        BallotEntryIn(voted_user_id="a", overall=11)
    with pytest.raises(ValidationError):
        BallotEntryIn(voted_user_id="a")


def test_substats_accept_zero_as_unscored():
    entry = BallotEntryIn(voted_user_id="a", overall=5, pace=0, attack=10)
    assert (entry.pace, entry.attack, entry.defense) == (0, 10, None)
    with pytest.raises(ValidationError):
        BallotEntryIn(voted_user_id="a", overall=5, pace=11)


def test_comment_length_limit():
    BallotEntryIn(voted_user_id="a", overall=5, comment="x" * 500)
    with pytest.raises(ValidationError):
        BallotEntryIn(voted_user_id="a", overall=5, comment="x" * 501)


def test_ballot_rejects_empty_and_repeated_targets():
    with pytest.raises(ValidationError):
        BallotIn(votes=[])
    with pytest.raises(ValidationError):
        BallotIn(votes=[{"voted_user_id": "a", "overall": 5}, {"voted_user_id": "a", "overall": 6}])


def test_match_status_values():
    assert MatchStatusIn(status="CANCELLED").status == "CANCELLED"
    with pytest.raises(ValidationError):
        MatchStatusIn(status="PAUSED")


def test_roster_team_must_be_a_or_b():
    with pytest.raises(ValidationError):
        MatchCreateIn(location_name="x", date_time="2026-10-20T20:00:00+00:00", players=[{"user_id": "a", "team": "C"}])
