"""Competition scorer — ranks a roster by weighted engagement and pays prizes.

Scoring formula:
    score(p) = Σ_kind count(p, kind) × weight[kind]

Counts are accumulated first and combined in fixed kind order, so the
ranking does not depend on the order events arrive in.

Tie-breaking: equal scores keep their relative roster order (stable
sort on roster position). Nothing depends on dict iteration order.

Prize formula:
    prize[i] = total_prize_pool × shares[i]     for i < min(len(shares), len(ranked))

When the ranking is shorter than the share list, the unused shares are
forfeited unless renormalize_on_short_roster is set, in which case the
used shares are scaled up so the configured fraction of the pool is
still paid out in full.

The scorer is pure computation. Persisting winners and moving the
competition to COMPLETED belongs to the service layer.
"""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from nyasawave.errors import ValidationError
from nyasawave.models.competition import (
    EngagementEvent,
    EngagementKind,
    PrizeAllocation,
    PrizeAward,
    RankedEntry,
    RankedResult,
    ScoreWeights,
)
from nyasawave.models.money import ONE, ZERO, Number, fraction, non_negative, round_currency
from nyasawave.policy.resolver import PolicyResolver


class CompetitionScorer:
    """Computes competition rankings and prize allocations.

    Usage:
        scorer = CompetitionScorer(resolver)
        ranked = scorer.compute_scores(["A", "B", "C"], events)
        allocation = scorer.allocate_prizes(ranked, Decimal("1000"))
    """

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    def compute_scores(
        self,
        roster: Sequence[str],
        events: Iterable[EngagementEvent],
        weights: Optional[ScoreWeights] = None,
    ) -> RankedResult:
        """Aggregate weighted events per participant and rank the roster.

        Args:
            roster: Participant IDs in roster order. Must be non-empty
                and unique.
            events: Events already scoped to this competition. Events
                for participants outside the roster contribute nothing.
            weights: Per-kind weights (defaults to policy weights).

        Returns:
            A RankedResult with exactly one entry per roster participant.

        Raises:
            ValidationError: empty or duplicate roster, unknown event kind.
        """
        roster = list(roster)
        if not roster:
            raise ValidationError("Roster must contain at least one participant")
        duplicates = sorted(p for p, n in Counter(roster).items() if n > 1)
        if duplicates:
            raise ValidationError(f"Duplicate participants in roster: {', '.join(duplicates)}")

        if weights is None:
            weights = self._resolver.score_weights()

        counts: dict[str, Counter] = {p: Counter() for p in roster}
        for event in events:
            kind = EngagementKind.parse(event.kind)
            if event.participant_id in counts:
                counts[event.participant_id][kind] += 1

        entries = [
            RankedEntry(
                participant_id=participant_id,
                score=self._weighted_total(counts[participant_id], weights),
                roster_index=index,
            )
            for index, participant_id in enumerate(roster)
        ]
        # sorted() is stable: equal scores keep roster order
        entries = sorted(entries, key=lambda e: -e.score)
        return RankedResult(entries=tuple(entries))

    def allocate_prizes(
        self,
        ranked: RankedResult,
        total_prize_pool: Number,
        distribution_shares: Optional[Sequence[Number]] = None,
        renormalize_on_short_roster: Optional[bool] = None,
    ) -> PrizeAllocation:
        """Allocate the prize pool across the top places of a ranking.

        Args:
            ranked: Output of compute_scores.
            total_prize_pool: Pool to distribute (>= 0).
            distribution_shares: Share per place, rank 1 first (defaults
                to policy). Each in [0, 1], summing to at most 1.
            renormalize_on_short_roster: Scale used shares up when fewer
                participants than places exist (defaults to policy).

        Raises:
            ValidationError: negative pool or malformed shares.
        """
        pool = non_negative(total_prize_pool, "total_prize_pool")
        if distribution_shares is None:
            distribution_shares = self._resolver.prize_distribution()
        if renormalize_on_short_roster is None:
            renormalize_on_short_roster = self._resolver.renormalize_on_short_roster()

        shares = self._validate_shares(distribution_shares)
        placed = list(ranked)[:len(shares)]
        used = shares[:len(placed)]
        configured_total = sum(shares, ZERO)
        used_total = sum(used, ZERO)

        renormalized = False
        if (
            renormalize_on_short_roster
            and len(placed) < len(shares)
            and used_total > ZERO
        ):
            scale = configured_total / used_total
            used = [s * scale for s in used]
            renormalized = True

        awards: list[PrizeAward] = []
        for index, (entry, share) in enumerate(zip(placed, used)):
            amount = pool * share
            awards.append(PrizeAward(
                rank=index + 1,
                participant_id=entry.participant_id,
                score=entry.score,
                share=share,
                prize_amount=amount,
                prize_amount_rounded=round_currency(amount),
            ))

        allocated = sum((a.prize_amount for a in awards), ZERO)
        forfeited = max(ZERO, pool * configured_total - allocated)
        return PrizeAllocation(
            total_prize_pool=pool,
            awards=tuple(awards),
            allocated_total=allocated,
            forfeited_amount=forfeited,
            renormalized=renormalized,
        )

    def rank_and_allocate(
        self,
        roster: Sequence[str],
        events: Iterable[EngagementEvent],
        total_prize_pool: Number,
        weights: Optional[ScoreWeights] = None,
        distribution_shares: Optional[Sequence[Number]] = None,
        renormalize_on_short_roster: Optional[bool] = None,
    ) -> tuple[RankedResult, PrizeAllocation]:
        """Score the roster and allocate prizes in one call."""
        ranked = self.compute_scores(roster, events, weights)
        allocation = self.allocate_prizes(
            ranked, total_prize_pool, distribution_shares,
            renormalize_on_short_roster,
        )
        return ranked, allocation

    def _validate_shares(self, distribution_shares: Sequence[Number]) -> list[Decimal]:
        shares = [
            fraction(s, f"distribution_shares[{i}]")
            for i, s in enumerate(distribution_shares)
        ]
        total = sum(shares, ZERO)
        if total > ONE + self._resolver.share_tolerance():
            raise ValidationError(
                f"Distribution shares must sum to at most 1, got {total}"
            )
        return shares

    @staticmethod
    def _weighted_total(counts: Counter, weights: ScoreWeights) -> Decimal:
        total = ZERO
        for kind in EngagementKind:
            total += counts[kind] * weights.weight_for(kind)
        return total
