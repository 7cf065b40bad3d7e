"""Competition models — engagement events, weights, rankings, prizes.

A competition (tournament) ranks its roster by weighted engagement and
pays a prize pool out to the top places.

Competition lifecycle: DRAFT → ACTIVE → CLOSED → COMPLETED
                       ACTIVE → COMPLETED
                       Any non-terminal state → CANCELLED

Invariants enforced by these models:
- Score weights are non-negative and cover every engagement kind
- A ranking holds every roster participant exactly once
- Prize amounts keep the unrounded value next to the display value
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from nyasawave.errors import ValidationError
from nyasawave.models.money import Number, ZERO, to_decimal


class EngagementKind(str, enum.Enum):
    """Kind of interaction attributable to a participant."""
    VOTE = "vote"
    PLAY = "play"
    LIKE = "like"
    DOWNLOAD = "download"

    @classmethod
    def parse(cls, value: Any) -> EngagementKind:
        """Return the kind for a string, rejecting anything unrecognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(k.value for k in cls)
            raise ValidationError(
                f"Unknown engagement kind: {value!r}. Allowed: {allowed}"
            ) from None


class CompetitionStatus(str, enum.Enum):
    """Lifecycle state of a competition."""
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class EngagementEvent:
    """One observed interaction with a participant's entry.

    The timestamp is informational; scoring never reads it.
    """
    participant_id: str
    competition_id: str
    kind: EngagementKind
    timestamp_utc: Optional[datetime] = None


@dataclass(frozen=True)
class ScoreWeights:
    """Weight added to a participant's score per engagement kind."""
    vote: Decimal
    play: Decimal
    like: Decimal
    download: Decimal

    def __post_init__(self) -> None:
        for kind in EngagementKind:
            value = to_decimal(getattr(self, kind.value), f"weight[{kind.value}]")
            if value < ZERO:
                raise ValidationError(
                    f"weight[{kind.value}] must be >= 0, got {value}"
                )
            # frozen: normalise through object.__setattr__
            object.__setattr__(self, kind.value, value)

    @staticmethod
    def from_mapping(weights: Mapping[str, Number]) -> ScoreWeights:
        unknown = set(weights) - {k.value for k in EngagementKind}
        if unknown:
            raise ValidationError(
                f"Unknown engagement kind in weights: {', '.join(sorted(unknown))}"
            )
        missing = [k.value for k in EngagementKind if k.value not in weights]
        if missing:
            raise ValidationError(f"Missing weights for: {', '.join(missing)}")
        return ScoreWeights(**{k.value: weights[k.value] for k in EngagementKind})

    def weight_for(self, kind: EngagementKind) -> Decimal:
        return getattr(self, kind.value)

    def as_dict(self) -> dict[str, Decimal]:
        return {k.value: self.weight_for(k) for k in EngagementKind}


@dataclass(frozen=True)
class RankedEntry:
    """A participant's aggregate score and original roster position."""
    participant_id: str
    score: Decimal
    roster_index: int


@dataclass(frozen=True)
class RankedResult:
    """Participants sorted by score descending, ties in roster order."""
    entries: tuple[RankedEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def participant_ids(self) -> list[str]:
        return [e.participant_id for e in self.entries]

    def score_of(self, participant_id: str) -> Decimal:
        for entry in self.entries:
            if entry.participant_id == participant_id:
                return entry.score
        raise KeyError(participant_id)


@dataclass(frozen=True)
class PrizeAward:
    """A single placed participant and their share of the pool."""
    rank: int
    participant_id: str
    score: Decimal
    share: Decimal
    prize_amount: Decimal
    prize_amount_rounded: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "participant_id": self.participant_id,
            "score": str(self.score),
            "share": str(self.share),
            "prize_amount": str(self.prize_amount),
            "prize_amount_rounded": str(self.prize_amount_rounded),
        }


@dataclass(frozen=True)
class PrizeAllocation:
    """Prize distribution for the top places of a ranking.

    Invariant: allocated_total + forfeited_amount == total_prize_pool
    × sum(configured shares) unless renormalized is set, in which
    case forfeited_amount is zero.
    """
    total_prize_pool: Decimal
    awards: tuple[PrizeAward, ...]
    allocated_total: Decimal
    forfeited_amount: Decimal
    renormalized: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_prize_pool": str(self.total_prize_pool),
            "awards": [a.to_dict() for a in self.awards],
            "allocated_total": str(self.allocated_total),
            "forfeited_amount": str(self.forfeited_amount),
            "renormalized": self.renormalized,
        }


@dataclass
class Competition:
    """A tournament record as held by the service layer.

    Mutable: status moves through the lifecycle and winners are
    written once on completion.
    """
    competition_id: str
    title: str
    prize_pool: Decimal
    currency: str = "MWK"
    status: CompetitionStatus = CompetitionStatus.DRAFT
    participants: list[str] = field(default_factory=list)
    winners: list[PrizeAward] = field(default_factory=list)
    created_utc: Optional[datetime] = None
    completed_utc: Optional[datetime] = None
