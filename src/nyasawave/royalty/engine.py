"""Royalty engine — computes artist earnings and validates revenue splits.

Formulas (all Decimal):

    stream_earning       = rate(premium|free) × split.artist
    distribute_revenue   = total × split[party]           for each party
    subscription_earning = monthly_fee × subscription_share
    licensing            = fee × (split.artist + Δartist),
                           fee × (split.platform + Δplatform)
    payout amount        = total_revenue × artist_share_fraction
    projection           = streams × pf × tracks × premium_rate × artist
                         + streams × (1 − pf) × tracks × free_rate × artist

Invariants:
- No split is used before validate_split accepts it
- Unknown licensing tiers are rejected, never substituted
- Payouts are scheduled on a fixed day of the following month
- The engine never issues money; it computes amounts and eligibility

Time only enters through the optional as_of argument, so every result
is a pure function of its inputs once as_of is pinned.
"""

from __future__ import annotations

import calendar
import hashlib
import json
import re
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from nyasawave.errors import ValidationError
from nyasawave.models.money import (
    ONE,
    ZERO,
    Number,
    fraction,
    non_negative,
    round_currency,
)
from nyasawave.models.royalty import (
    SPLIT_PARTIES,
    LicensingDeal,
    LicensingDistribution,
    LicensingStatus,
    LicensingTierName,
    PaymentRecord,
    PaymentStatus,
    PayoutSchedule,
    RevenueDistribution,
    RevenueSource,
    RevenueStreamRates,
    RoyaltySplit,
)
from nyasawave.policy.resolver import PolicyResolver


SplitLike = Union[RoyaltySplit, Mapping[str, Any]]

_PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class RoyaltyEngine:
    """Pure monetary computation for artist royalties.

    Usage:
        engine = RoyaltyEngine(resolver)
        engine.validate_split(split)
        per_stream = engine.stream_earning(is_premium=True)
        schedule = engine.calculate_payout(Decimal("50000"), Decimal("0.7"))
    """

    def __init__(self, resolver: PolicyResolver) -> None:
        self._resolver = resolver

    # ------------------------------------------------------------------
    # Split validation
    # ------------------------------------------------------------------

    def validate_split(self, split: SplitLike) -> RoyaltySplit:
        """Check a split is complete, in range, and sums to 1.0.

        This is the single gate every split passes before it is used
        or accepted into configuration.

        Returns:
            The split as a RoyaltySplit.

        Raises:
            ValidationError: missing party, share outside [0, 1], or
                total more than the split tolerance away from 1.0.
        """
        if not isinstance(split, RoyaltySplit):
            split = RoyaltySplit.from_mapping(split)
        for party in SPLIT_PARTIES:
            fraction(getattr(split, party), f"split.{party}")
        if abs(split.total - ONE) >= self._resolver.split_tolerance():
            raise ValidationError(f"Split must sum to 1.0, got {split.total}")
        return split

    def is_valid_split(self, split: SplitLike) -> bool:
        try:
            self.validate_split(split)
        except ValidationError:
            return False
        return True

    def split_for(self, source: RevenueSource) -> RoyaltySplit:
        """Return the split profile for a revenue source.

        A source-specific split in policy wins; otherwise the default
        split applies.
        """
        configured = self._resolver.source_split(RevenueSource(source))
        return self.validate_split(configured or self._resolver.default_split())

    # ------------------------------------------------------------------
    # Earnings
    # ------------------------------------------------------------------

    def stream_earning(
        self,
        is_premium: bool,
        rates: Optional[RevenueStreamRates] = None,
        split: Optional[SplitLike] = None,
    ) -> Decimal:
        """Artist earning from a single stream."""
        split = self._resolve_split(split, RevenueSource.STREAMS)
        rates = rates or self._resolver.stream_rates()
        rate = rates.premium_rate if is_premium else rates.free_rate
        return rate * split.artist

    def distribute_revenue(
        self,
        total_revenue: Number,
        split: Optional[SplitLike] = None,
    ) -> RevenueDistribution:
        """Split a revenue amount across all four parties."""
        total = non_negative(total_revenue, "total_revenue")
        split = self._resolve_split(split, RevenueSource.STREAMS)
        return RevenueDistribution(
            artist=total * split.artist,
            producer=total * split.producer,
            label=total * split.label,
            platform=total * split.platform,
        )

    def subscription_earning(
        self,
        monthly_fee: Optional[Number] = None,
        subscription_share_fraction: Optional[Number] = None,
    ) -> Decimal:
        """Share of a subscription fee flowing to the artist played.

        Apportioning this across several artists played in the same
        period is the caller's job.
        """
        if monthly_fee is None:
            monthly_fee = self._resolver.default_subscription_fee()
        if subscription_share_fraction is None:
            subscription_share_fraction = self._resolver.stream_rates().subscription_share
        fee = non_negative(monthly_fee, "monthly_fee")
        share = fraction(subscription_share_fraction, "subscription_share_fraction")
        return fee * share

    def licensing_shares(
        self,
        split: Optional[SplitLike] = None,
    ) -> tuple[Decimal, Decimal]:
        """Return the (artist, platform) shares applied to licensing fees.

        Licensing uses its own profile: the base split adjusted by the
        configured per-party deltas (reference: artist +0.10,
        platform −0.05).
        """
        base = self._resolve_split(split, RevenueSource.LICENSING)
        adjustment = self._resolver.licensing_adjustment()
        artist = fraction(
            base.artist + adjustment.get("artist", ZERO), "licensing artist share",
        )
        platform = fraction(
            base.platform + adjustment.get("platform", ZERO), "licensing platform share",
        )
        return artist, platform

    def distribute_licensing_revenue(
        self,
        fee: Number,
        split: Optional[SplitLike] = None,
    ) -> LicensingDistribution:
        """Split a licensing fee between artist and platform."""
        total = non_negative(fee, "fee")
        artist_share, platform_share = self.licensing_shares(split)
        return LicensingDistribution(
            artist=total * artist_share,
            platform=total * platform_share,
            total=total,
        )

    # ------------------------------------------------------------------
    # Payouts
    # ------------------------------------------------------------------

    def calculate_payout(
        self,
        total_revenue: Number,
        artist_share_fraction: Number,
        minimum_payout: Optional[Number] = None,
        as_of: Optional[Union[datetime, date]] = None,
    ) -> PayoutSchedule:
        """Compute payout amount, eligibility and the next payout date.

        No money moves here; the ledger system acts on the schedule.
        """
        revenue = non_negative(total_revenue, "total_revenue")
        share = fraction(artist_share_fraction, "artist_share_fraction")
        if minimum_payout is None:
            minimum_payout = self._resolver.minimum_payout()
        minimum = non_negative(minimum_payout, "minimum_payout")
        if as_of is None:
            as_of = datetime.now(timezone.utc)

        amount = revenue * share
        return PayoutSchedule(
            payable=amount >= minimum,
            amount=amount,
            amount_rounded=round_currency(amount),
            minimum_payout=minimum,
            next_payout_date=self.next_payout_date(as_of),
        )

    def next_payout_date(self, as_of: Union[datetime, date]) -> date:
        """Payout day of the calendar month after as_of.

        Aware datetimes are read in UTC; naive ones and plain dates as given.
        """
        if isinstance(as_of, datetime) and as_of.tzinfo is not None:
            as_of = as_of.astimezone(timezone.utc)
        year, month = as_of.year, as_of.month + 1
        if month > 12:
            year, month = year + 1, 1
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, min(self._resolver.payout_day_of_month(), last_day))

    def create_payment_record(
        self,
        artist_id: str,
        amount: Number,
        source: Union[RevenueSource, str],
        period: str,
        as_of: Optional[datetime] = None,
        sequence: int = 0,
    ) -> PaymentRecord:
        """Build a pending accounting entry for an artist and period.

        sequence distinguishes otherwise identical entries (same artist,
        amount, source, period and as_of); callers recording into a
        ledger pass the ledger's running count.
        """
        if not artist_id:
            raise ValidationError("artist_id is required")
        value = non_negative(amount, "amount")
        try:
            source = RevenueSource(source)
        except ValueError:
            raise ValidationError(f"Unknown revenue source: {source!r}") from None
        if not _PERIOD_RE.match(period):
            raise ValidationError(f"Period must be YYYY-MM, got {period!r}")
        if as_of is None:
            as_of = datetime.now(timezone.utc)

        record_id = "PAY-" + _digest({
            "artist_id": artist_id,
            "amount": str(value),
            "source": source.value,
            "period": period,
            "created_utc": as_of.isoformat(),
            "sequence": sequence,
        })
        return PaymentRecord(
            record_id=record_id,
            artist_id=artist_id,
            amount=value,
            source=source,
            period=period,
            status=PaymentStatus.PENDING,
            created_utc=as_of,
        )

    # ------------------------------------------------------------------
    # Licensing
    # ------------------------------------------------------------------

    def generate_licensing_proposal(
        self,
        tier: Union[LicensingTierName, str],
        territory: str,
        duration_days: int,
        track_id: str = "",
        as_of: Optional[datetime] = None,
    ) -> LicensingDeal:
        """Build a pending licensing deal at the tier's minimum fee.

        Raises:
            ValidationError: unknown tier, empty territory, or a
                non-positive duration.
        """
        tier_name = LicensingTierName.parse(tier)
        tiers = self._resolver.licensing_tiers()
        if tier_name not in tiers:
            raise ValidationError(f"No fee schedule configured for tier: {tier_name.value}")
        if not territory:
            raise ValidationError("territory is required")
        if isinstance(duration_days, bool) or not isinstance(duration_days, int) or duration_days <= 0:
            raise ValidationError(f"duration_days must be a positive integer, got {duration_days!r}")
        if as_of is None:
            as_of = datetime.now(timezone.utc)

        schedule = tiers[tier_name]
        start = as_of
        end = start + timedelta(days=duration_days)
        terms = tuple(
            term.format(territory=territory, duration_days=duration_days)
            for term in self._resolver.licensing_terms()
        )
        deal_id = "LICENSE-" + _digest({
            "track_id": track_id,
            "tier": tier_name.value,
            "territory": territory,
            "duration_days": duration_days,
            "start_utc": start.isoformat(),
        })
        return LicensingDeal(
            deal_id=deal_id,
            track_id=track_id,
            licensee="TO_BE_DETERMINED",
            tier=tier_name,
            usage=f"{tier_name.value} licensing",
            territory=territory,
            start_utc=start,
            end_utc=end,
            fee=schedule.min_fee,
            currency=self._resolver.currency(),
            status=LicensingStatus.PENDING,
            terms=terms,
        )

    def quote_licensing_fee(
        self,
        tier: Union[LicensingTierName, str],
        uses: int = 0,
    ) -> Decimal:
        """Minimum fee plus the per-use increment for each use."""
        tier_name = LicensingTierName.parse(tier)
        tiers = self._resolver.licensing_tiers()
        if tier_name not in tiers:
            raise ValidationError(f"No fee schedule configured for tier: {tier_name.value}")
        if isinstance(uses, bool) or not isinstance(uses, int) or uses < 0:
            raise ValidationError(f"uses must be a non-negative integer, got {uses!r}")
        schedule = tiers[tier_name]
        return schedule.min_fee + schedule.per_use * uses

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def project_monthly_earnings(
        self,
        avg_monthly_streams: Number,
        premium_fraction: Optional[Number] = None,
        track_count: Optional[Number] = None,
        rates: Optional[RevenueStreamRates] = None,
        split: Optional[SplitLike] = None,
    ) -> Decimal:
        """Estimate an artist's monthly stream earnings."""
        defaults = self._resolver.projection_defaults()
        if premium_fraction is None:
            premium_fraction = defaults["premium_fraction"]
        if track_count is None:
            track_count = defaults["track_count"]
        streams = non_negative(avg_monthly_streams, "avg_monthly_streams")
        pf = fraction(premium_fraction, "premium_fraction")
        tracks = non_negative(track_count, "track_count")

        premium_streams = streams * pf * tracks
        free_streams = streams * (ONE - pf) * tracks
        return (
            premium_streams * self.stream_earning(True, rates, split)
            + free_streams * self.stream_earning(False, rates, split)
        )

    def _resolve_split(
        self,
        split: Optional[SplitLike],
        source: RevenueSource,
    ) -> RoyaltySplit:
        if split is None:
            return self.split_for(source)
        return self.validate_split(split)


def _digest(payload: dict[str, Any]) -> str:
    canonical = json.dumps(payload, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()[:16].upper()
