"""NyasaWave service — facade over the scoring and royalty engines.

This is the primary interface for programmatic access. It orchestrates:
- Competition lifecycle (register, activate, close, complete, cancel)
- Engagement recording (append-only log, scoped per competition)
- Winner computation and prize allocation (one-shot on completion)
- Artist earnings, payout statements and licensing proposals

The engines raise ValidationError; this layer turns every failure into
a ServiceResult with success=False so callers (HTTP handlers, the CLI)
can map it to their own error surface.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from nyasawave.competition.scorer import CompetitionScorer
from nyasawave.competition.state_machine import CompetitionStateMachine
from nyasawave.errors import ValidationError
from nyasawave.models.competition import Competition, CompetitionStatus, EngagementKind
from nyasawave.models.money import Number, non_negative
from nyasawave.models.royalty import LicensingTierName, RevenueSource
from nyasawave.persistence.event_log import EngagementLog, EngagementRecord
from nyasawave.policy.resolver import PolicyResolver
from nyasawave.royalty.engine import RoyaltyEngine
from nyasawave.royalty.ledger import EarningsLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class NyasaWaveService:
    """Unified facade for competitions and royalties.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = NyasaWaveService(resolver)

        service.register_competition("T-1", "Summer Beats", "1000", ["A", "B", "C"])
        service.activate_competition("T-1")
        service.record_engagement("T-1", "A", "vote")
        result = service.complete_competition("T-1")

    Persistence (optional):
        service = NyasaWaveService(resolver, event_log=EngagementLog(path))
    """

    def __init__(
        self,
        resolver: PolicyResolver,
        event_log: Optional[EngagementLog] = None,
        ledger: Optional[EarningsLedger] = None,
    ) -> None:
        self._resolver = resolver
        self._scorer = CompetitionScorer(resolver)
        self._royalties = RoyaltyEngine(resolver)
        self._state_machine = CompetitionStateMachine()
        self._event_log = event_log if event_log is not None else EngagementLog()
        self._ledger = ledger if ledger is not None else EarningsLedger()
        self._competitions: dict[str, Competition] = {}
        # Continue numbering after any persisted events
        self._event_counter = itertools.count(self._event_log.count + 1)

    # ------------------------------------------------------------------
    # Competition lifecycle
    # ------------------------------------------------------------------

    def register_competition(
        self,
        competition_id: str,
        title: str,
        prize_pool: Number,
        participants: Sequence[str] = (),
        currency: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        if competition_id in self._competitions:
            return ServiceResult(
                success=False, errors=[f"Competition already exists: {competition_id}"],
            )
        try:
            pool = non_negative(prize_pool, "prize_pool")
        except ValidationError as exc:
            return self._rejected("register_competition", exc)
        if len(set(participants)) != len(participants):
            return ServiceResult(success=False, errors=["Duplicate participants in roster"])

        competition = Competition(
            competition_id=competition_id,
            title=title,
            prize_pool=pool,
            currency=currency or self._resolver.currency(),
            participants=list(participants),
            created_utc=now or datetime.now(timezone.utc),
        )
        self._competitions[competition_id] = competition
        logger.info("Registered competition %s (%d participants)", competition_id, len(participants))
        return ServiceResult(success=True, data={
            "competition_id": competition_id,
            "status": competition.status.value,
        })

    def add_participant(self, competition_id: str, participant_id: str) -> ServiceResult:
        competition = self._competitions.get(competition_id)
        if competition is None:
            return self._not_found(competition_id)
        if competition.status not in (CompetitionStatus.DRAFT, CompetitionStatus.ACTIVE):
            return ServiceResult(success=False, errors=[
                f"Competition {competition_id} is not open for entries "
                f"(status: {competition.status.value})"
            ])
        if participant_id in competition.participants:
            return ServiceResult(success=False, errors=[
                f"Participant already entered: {participant_id}"
            ])
        competition.participants.append(participant_id)
        return ServiceResult(success=True, data={
            "competition_id": competition_id,
            "participants": list(competition.participants),
        })

    def activate_competition(self, competition_id: str) -> ServiceResult:
        return self._transition(competition_id, CompetitionStatus.ACTIVE)

    def close_competition(self, competition_id: str) -> ServiceResult:
        return self._transition(competition_id, CompetitionStatus.CLOSED)

    def cancel_competition(self, competition_id: str) -> ServiceResult:
        return self._transition(competition_id, CompetitionStatus.CANCELLED)

    def get_competition(self, competition_id: str) -> Optional[Competition]:
        return self._competitions.get(competition_id)

    def record_engagement(
        self,
        competition_id: str,
        participant_id: str,
        kind: str,
        event_id: Optional[str] = None,
        now: Optional[datetime] = None,
        voter_id: Optional[str] = None,
    ) -> ServiceResult:
        """Append an engagement to the log. The competition must be active.

        When voter_id is given, a voter may vote for a participant at
        most once per UTC day.
        """
        competition = self._competitions.get(competition_id)
        if competition is None:
            return self._not_found(competition_id)
        if competition.status != CompetitionStatus.ACTIVE:
            return ServiceResult(success=False, errors=[
                f"Competition {competition_id} is not active "
                f"(status: {competition.status.value})"
            ])
        try:
            record = EngagementRecord.create(
                event_id=event_id or self._next_event_id(),
                competition_id=competition_id,
                participant_id=participant_id,
                kind=EngagementKind.parse(kind),
                timestamp_utc=now,
                voter_id=voter_id or "",
            )
            if voter_id and record.kind == EngagementKind.VOTE and self._event_log.has_vote(
                competition_id, participant_id, voter_id, record.day,
            ):
                return ServiceResult(success=False, errors=[
                    f"Voter {voter_id} already voted for {participant_id} on {record.day}"
                ])
            self._event_log.append(record)
        except ValueError as exc:
            return self._rejected("record_engagement", exc)
        return ServiceResult(success=True, data={
            "event_id": record.event_id,
            "event_hash": record.event_hash,
        })

    def complete_competition(
        self,
        competition_id: str,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        """Compute winners and move the competition to COMPLETED.

        One-shot: a completed competition is terminal, so a second call
        is rejected instead of recomputing winners.
        """
        competition = self._competitions.get(competition_id)
        if competition is None:
            return self._not_found(competition_id)
        errors = self._state_machine.validate_transition(
            competition, CompetitionStatus.COMPLETED,
        )
        if errors:
            return ServiceResult(success=False, errors=errors)

        try:
            ranked, allocation = self._scorer.rank_and_allocate(
                competition.participants,
                self._event_log.events_for(competition_id),
                competition.prize_pool,
            )
        except ValidationError as exc:
            return self._rejected("complete_competition", exc)

        self._state_machine.apply_transition(competition, CompetitionStatus.COMPLETED)
        competition.winners = list(allocation.awards)
        competition.completed_utc = now or datetime.now(timezone.utc)
        logger.info(
            "Completed competition %s: %d winners, %s allocated, %s forfeited",
            competition_id, len(allocation.awards),
            allocation.allocated_total, allocation.forfeited_amount,
        )
        return ServiceResult(success=True, data={
            "competition_id": competition_id,
            "status": competition.status.value,
            "ranking": [
                {"participant_id": e.participant_id, "score": str(e.score)}
                for e in ranked
            ],
            "allocation": allocation.to_dict(),
            "completed_utc": competition.completed_utc.isoformat(),
        })

    # ------------------------------------------------------------------
    # Royalties
    # ------------------------------------------------------------------

    def record_earning(
        self,
        artist_id: str,
        amount: Number,
        source: str,
        period: str,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        """Record gross revenue attributed to an artist for a period."""
        try:
            entry = self._royalties.create_payment_record(
                artist_id, amount, source, period, as_of=now,
                sequence=self._ledger.count,
            )
            self._ledger.record(entry)
        except ValidationError as exc:
            return self._rejected("record_earning", exc)
        return ServiceResult(success=True, data={
            "record_id": entry.record_id,
            "status": entry.status.value,
        })

    def artist_payout(
        self,
        artist_id: str,
        period: Optional[str] = None,
        artist_share_fraction: Optional[Number] = None,
        minimum_payout: Optional[Number] = None,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        """Payout statement for an artist's recorded revenue.

        The artist share defaults to the default split's artist share.
        """
        try:
            if artist_share_fraction is None:
                artist_share_fraction = self._royalties.split_for(RevenueSource.STREAMS).artist
            total = self._ledger.total_for(artist_id, period)
            schedule = self._royalties.calculate_payout(
                total, artist_share_fraction, minimum_payout, as_of=now,
            )
        except ValidationError as exc:
            return self._rejected("artist_payout", exc)
        data = schedule.to_dict()
        data.update({
            "artist_id": artist_id,
            "period": period,
            "gross_revenue": str(total),
            "by_source": {k: str(v) for k, v in self._ledger.totals_by_source(artist_id, period).items()},
        })
        return ServiceResult(success=True, data=data)

    def licensing_proposal(
        self,
        tier: str,
        territory: str,
        duration_days: int,
        track_id: str = "",
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        try:
            deal = self._royalties.generate_licensing_proposal(
                LicensingTierName.parse(tier), territory, duration_days,
                track_id=track_id, as_of=now,
            )
        except ValidationError as exc:
            return self._rejected("licensing_proposal", exc)
        return ServiceResult(success=True, data=deal.to_dict())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(self, competition_id: str, target: CompetitionStatus) -> ServiceResult:
        competition = self._competitions.get(competition_id)
        if competition is None:
            return self._not_found(competition_id)
        if target == CompetitionStatus.ACTIVE and not competition.participants:
            return ServiceResult(success=False, errors=[
                f"Competition {competition_id} has no participants"
            ])
        errors = self._state_machine.apply_transition(competition, target)
        if errors:
            return ServiceResult(success=False, errors=errors)
        logger.info("Competition %s → %s", competition_id, target.value)
        return ServiceResult(success=True, data={
            "competition_id": competition_id,
            "status": competition.status.value,
        })

    def _next_event_id(self) -> str:
        # Skip sequence numbers a caller already used as an explicit ID
        while True:
            candidate = f"evt-{next(self._event_counter):06d}"
            if candidate not in self._event_log:
                return candidate

    @staticmethod
    def _not_found(competition_id: str) -> ServiceResult:
        return ServiceResult(success=False, errors=[f"Competition not found: {competition_id}"])

    @staticmethod
    def _rejected(operation: str, exc: Exception) -> ServiceResult:
        logger.warning("%s rejected: %s", operation, exc)
        return ServiceResult(success=False, errors=[str(exc)])
