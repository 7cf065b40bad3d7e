"""Earnings ledger — accumulates payment records per artist and period.

The ledger is the data source for payout statements: it totals what an
artist is owed for a period, optionally per revenue source, and feeds
that total into RoyaltyEngine.calculate_payout.

Storage is in-memory. Durable storage of payment records belongs to
the platform's ledger system, which can replay records into this one.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from nyasawave.errors import ValidationError
from nyasawave.models.money import ZERO
from nyasawave.models.royalty import PaymentRecord, RevenueSource


class EarningsLedger:
    """In-memory ledger of artist payment records.

    Usage:
        ledger = EarningsLedger()
        ledger.record(engine.create_payment_record("artist-1", "12.50", "streams", "2026-01"))
        owed = ledger.total_for("artist-1", period="2026-01")
    """

    def __init__(self) -> None:
        self._records: List[PaymentRecord] = []
        self._record_ids: set[str] = set()

    def record(self, entry: PaymentRecord) -> None:
        """Record a payment entry.

        Raises ValidationError if the record_id has been seen before.
        """
        if entry.record_id in self._record_ids:
            raise ValidationError(f"Duplicate payment record: {entry.record_id}")
        self._records.append(entry)
        self._record_ids.add(entry.record_id)

    def records_for(
        self,
        artist_id: str,
        period: Optional[str] = None,
    ) -> List[PaymentRecord]:
        return [
            r for r in self._records
            if r.artist_id == artist_id and (period is None or r.period == period)
        ]

    def total_for(
        self,
        artist_id: str,
        period: Optional[str] = None,
        source: Optional[RevenueSource] = None,
    ) -> Decimal:
        """Sum of recorded amounts, filtered by period and source."""
        return sum(
            (
                r.amount for r in self.records_for(artist_id, period)
                if source is None or r.source == source
            ),
            ZERO,
        )

    def totals_by_source(self, artist_id: str, period: Optional[str] = None) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = {}
        for r in self.records_for(artist_id, period):
            totals[r.source.value] = totals.get(r.source.value, ZERO) + r.amount
        return totals

    def periods_for(self, artist_id: str) -> List[str]:
        return sorted({r.period for r in self.records_for(artist_id)})

    @property
    def count(self) -> int:
        return len(self._records)
