from matchday.models.match import Match, MatchPlayer
from matchday.models.vote import MatchBallot, MatchVote
from matchday.models.honor import Honor
from matchday.models.duel import Duel
from matchday.models.league_member import LeagueMember
from matchday.models.prediction import MatchPredictionScore
from matchday.models.audit_log import AuditLog
