"""Royalty models — splits, stream rates, licensing, payouts.

All monetary values use Decimal. Every computed amount that is shown
to a person has a rounded twin; the unrounded value is what gets
reconciled.

Invariants enforced by the royalty engine against these models:
- A split names all four parties and sums to 1.0 (within 1e-3)
- Licensing tiers are looked up by name; unknown names are rejected
- Payout dates always fall on the configured day of the next month
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping

from nyasawave.errors import ValidationError
from nyasawave.models.money import fraction, non_negative, round_currency, to_decimal


SPLIT_PARTIES = ("artist", "producer", "label", "platform")


class RevenueSource(str, enum.Enum):
    """Where a unit of artist revenue came from."""
    STREAMS = "streams"
    SUBSCRIPTIONS = "subscriptions"
    LICENSING = "licensing"
    ADS = "ads"


class LicensingTierName(str, enum.Enum):
    """Category of commercial use with its own fee schedule."""
    COMMERCIAL_VIDEO = "commercial_video"
    FILM_THEATRICAL = "film_theatrical"
    PODCAST = "podcast"
    RADIO = "radio"
    EDUCATION = "education"

    @classmethod
    def parse(cls, value: Any) -> LicensingTierName:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace("-", "_"))
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise ValidationError(
                f"Unknown licensing tier: {value!r}. Allowed: {allowed}"
            ) from None


class LicensingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ACTIVE = "active"
    EXPIRED = "expired"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


@dataclass(frozen=True)
class RoyaltySplit:
    """Shares of revenue per party. Validated by RoyaltyEngine.validate_split."""
    artist: Decimal
    producer: Decimal
    label: Decimal
    platform: Decimal

    def __post_init__(self) -> None:
        for party in SPLIT_PARTIES:
            object.__setattr__(
                self, party, to_decimal(getattr(self, party), f"split.{party}"),
            )

    @staticmethod
    def from_mapping(shares: Mapping[str, Any]) -> RoyaltySplit:
        missing = [p for p in SPLIT_PARTIES if shares.get(p) is None]
        if missing:
            raise ValidationError(f"Split missing parties: {', '.join(missing)}")
        return RoyaltySplit(**{p: shares[p] for p in SPLIT_PARTIES})

    @property
    def total(self) -> Decimal:
        return self.artist + self.producer + self.label + self.platform

    def as_dict(self) -> dict[str, Decimal]:
        return {p: getattr(self, p) for p in SPLIT_PARTIES}


@dataclass(frozen=True)
class RevenueStreamRates:
    """Per-stream rates and the subscription share flowing to artists."""
    free_rate: Decimal
    premium_rate: Decimal
    subscription_share: Decimal

    def __post_init__(self) -> None:
        for name in ("free_rate", "premium_rate"):
            object.__setattr__(self, name, non_negative(getattr(self, name), name))
        object.__setattr__(
            self, "subscription_share",
            fraction(self.subscription_share, "subscription_share"),
        )


@dataclass(frozen=True)
class LicensingTier:
    name: LicensingTierName
    min_fee: Decimal
    per_use: Decimal
    description: str = ""


@dataclass(frozen=True)
class LicensingDeal:
    """A licensing proposal awaiting a licensee and approval."""
    deal_id: str
    track_id: str
    licensee: str
    tier: LicensingTierName
    usage: str
    territory: str
    start_utc: datetime
    end_utc: datetime
    fee: Decimal
    currency: str
    status: LicensingStatus
    terms: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "deal_id": self.deal_id,
            "track_id": self.track_id,
            "licensee": self.licensee,
            "tier": self.tier.value,
            "usage": self.usage,
            "territory": self.territory,
            "start_utc": self.start_utc.isoformat(),
            "end_utc": self.end_utc.isoformat(),
            "fee": str(self.fee),
            "currency": self.currency,
            "status": self.status.value,
            "terms": list(self.terms),
        }


@dataclass(frozen=True)
class RevenueDistribution:
    """Each party's share of a revenue amount."""
    artist: Decimal
    producer: Decimal
    label: Decimal
    platform: Decimal

    @property
    def total(self) -> Decimal:
        return self.artist + self.producer + self.label + self.platform

    def rounded(self) -> RevenueDistribution:
        return RevenueDistribution(
            artist=round_currency(self.artist),
            producer=round_currency(self.producer),
            label=round_currency(self.label),
            platform=round_currency(self.platform),
        )

    def as_dict(self) -> dict[str, Decimal]:
        return {p: getattr(self, p) for p in SPLIT_PARTIES}


@dataclass(frozen=True)
class LicensingDistribution:
    """Artist and platform shares of a licensing fee.

    artist + platform does not cover the whole fee: producer and
    label shares of licensing income are settled outside this engine.
    """
    artist: Decimal
    platform: Decimal
    total: Decimal


@dataclass(frozen=True)
class PayoutSchedule:
    """Payout eligibility for an artist's accumulated revenue."""
    payable: bool
    amount: Decimal
    amount_rounded: Decimal
    minimum_payout: Decimal
    next_payout_date: date

    def to_dict(self) -> dict[str, Any]:
        return {
            "payable": self.payable,
            "amount": str(self.amount),
            "amount_rounded": str(self.amount_rounded),
            "minimum_payout": str(self.minimum_payout),
            "next_payout_date": self.next_payout_date.isoformat(),
        }


@dataclass(frozen=True)
class PaymentRecord:
    """An accounting entry for money owed to an artist for a period."""
    record_id: str
    artist_id: str
    amount: Decimal
    source: RevenueSource
    period: str  # "YYYY-MM"
    status: PaymentStatus
    created_utc: datetime
