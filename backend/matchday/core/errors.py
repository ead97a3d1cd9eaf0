"""Domain errors raised by the lifecycle, voting and duel services.

Exception tree:
    MatchdayError
    +-- NotFound              (match / league / player / stats missing)
    +-- Forbidden             (league role does not allow the action)
    +-- InvalidTransition     (action illegal for the current match status)
    +-- InvalidBallot         (malformed ballot: unknown or repeated targets)
    +-- AlreadyVoted          (voter already has a ballot for the match)
    +-- VotingTimeout         (voting deadline elapsed; match gets closed)
    +-- InsufficientRoster    (fewer than two confirmed players for a duel)
    +-- NoCompatiblePair      (no pair clears the duel compatibility bar)
    +-- SelectionFailure      (internal error while scoring duel candidates)
    +-- DuelAlreadyExists     (the match already has its duel)

Every error carries a stable ``code`` and an HTTP ``status_code`` so the API
layer can render it without knowing the individual classes.
"""


class MatchdayError(Exception):
    """Base class for expected business outcomes surfaced to callers."""

    status_code = 400
    code = "error"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class NotFound(MatchdayError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class Forbidden(MatchdayError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Admin role required for this league"


class InvalidTransition(MatchdayError):
    status_code = 409
    code = "INVALID_TRANSITION"
    default_message = "Action not allowed for the current match status"


class InvalidBallot(MatchdayError):
    status_code = 400
    code = "INVALID_BALLOT"
    default_message = "Ballot is not valid for this match"


class AlreadyVoted(MatchdayError):
    status_code = 409
    code = "ALREADY_VOTED"
    default_message = "Votes for this match were already submitted"


class VotingTimeout(MatchdayError):
    status_code = 409
    code = "TIMEOUT"
    default_message = "Voting window has closed"


class InsufficientRoster(MatchdayError):
    status_code = 400
    code = "INSUFFICIENT_ROSTER"
    default_message = "At least two confirmed players are needed for a duel"


class NoCompatiblePair(MatchdayError):
    status_code = 400
    code = "NO_COMPATIBLE_PAIR"
    default_message = "No compatible pair of players for a duel"


class SelectionFailure(MatchdayError):
    """Unexpected failure while scoring duel candidates.

    Unlike the other errors this one is logged by the raiser and rendered as a
    generic failure.
    """

    status_code = 500
    code = "SELECTION_FAILURE"
    default_message = "Duel pair selection failed"


class DuelAlreadyExists(MatchdayError):
    status_code = 409
    code = "DUEL_ALREADY_EXISTS"
    default_message = "A duel was already generated for this match"
