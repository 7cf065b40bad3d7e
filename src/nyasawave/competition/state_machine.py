"""Competition state machine — enforces valid lifecycle transitions.

Competition lifecycle:
    DRAFT → ACTIVE → CLOSED → COMPLETED
    ACTIVE → COMPLETED
    Any non-terminal state → CANCELLED

State semantics:
- DRAFT: created, roster still being assembled.
- ACTIVE: entries open, engagement is being counted.
- CLOSED: engagement window over, results not yet computed.
- COMPLETED: terminal, winners computed and written once.
- CANCELLED: terminal, competition withdrawn.

COMPLETED is terminal so winners can never be recomputed.
"""

from __future__ import annotations

from nyasawave.models.competition import Competition, CompetitionStatus


_TRANSITIONS: dict[CompetitionStatus, set[CompetitionStatus]] = {
    CompetitionStatus.DRAFT: {CompetitionStatus.ACTIVE, CompetitionStatus.CANCELLED},
    CompetitionStatus.ACTIVE: {
        CompetitionStatus.CLOSED,
        CompetitionStatus.COMPLETED,
        CompetitionStatus.CANCELLED,
    },
    CompetitionStatus.CLOSED: {
        CompetitionStatus.COMPLETED,
        CompetitionStatus.CANCELLED,
    },
    CompetitionStatus.COMPLETED: set(),
    CompetitionStatus.CANCELLED: set(),
}


class CompetitionStateMachine:
    """Validates and applies competition status transitions.

    Validation only; event logging and persistence are the service
    layer's job.
    """

    @staticmethod
    def validate_transition(
        competition: Competition,
        target: CompetitionStatus,
    ) -> list[str]:
        """Check if a transition is valid. Returns errors (empty = OK)."""
        current = competition.status
        allowed = _TRANSITIONS.get(current, set())

        if target not in allowed:
            allowed_str = ", ".join(s.value for s in sorted(allowed, key=lambda x: x.value))
            return [
                f"Invalid competition transition: {current.value} → {target.value}. "
                f"Allowed from {current.value}: [{allowed_str}]"
            ]
        return []

    @staticmethod
    def apply_transition(
        competition: Competition,
        target: CompetitionStatus,
    ) -> list[str]:
        """Validate and apply a transition; mutates status on success."""
        errors = CompetitionStateMachine.validate_transition(competition, target)
        if errors:
            return errors
        competition.status = target
        return []

    @staticmethod
    def is_terminal(status: CompetitionStatus) -> bool:
        return status in (CompetitionStatus.COMPLETED, CompetitionStatus.CANCELLED)

    @staticmethod
    def can_complete(status: CompetitionStatus) -> bool:
        return CompetitionStatus.COMPLETED in _TRANSITIONS.get(status, set())
