"""Competitions — engagement scoring, ranking, prize allocation.

The scorer is pure computation over a roster and a pre-scoped event
list. The state machine guards the one-shot ACTIVE → COMPLETED move.
"""

from nyasawave.competition.scorer import CompetitionScorer
from nyasawave.competition.state_machine import CompetitionStateMachine

__all__ = ["CompetitionScorer", "CompetitionStateMachine"]
