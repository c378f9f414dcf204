"""Play-along scoring: timeline matching, counters and grading."""

from .practice_session import PracticeSession
from .score_engine import ScoreEngine
from .timeline_matcher import MatchOutcome, MatchResult, TimelineMatcher

__all__ = [
    "PracticeSession",
    "ScoreEngine",
    "TimelineMatcher",
    "MatchOutcome",
    "MatchResult",
]
