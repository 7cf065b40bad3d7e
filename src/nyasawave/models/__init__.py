"""Core data models for NyasaWave."""

from nyasawave.models.competition import (
    Competition,
    CompetitionStatus,
    EngagementEvent,
    EngagementKind,
    PrizeAllocation,
    PrizeAward,
    RankedEntry,
    RankedResult,
    ScoreWeights,
)
from nyasawave.models.royalty import (
    LicensingDeal,
    LicensingDistribution,
    LicensingStatus,
    LicensingTier,
    LicensingTierName,
    PaymentRecord,
    PaymentStatus,
    PayoutSchedule,
    RevenueDistribution,
    RevenueSource,
    RevenueStreamRates,
    RoyaltySplit,
)

__all__ = [
    "Competition",
    "CompetitionStatus",
    "EngagementEvent",
    "EngagementKind",
    "PrizeAllocation",
    "PrizeAward",
    "RankedEntry",
    "RankedResult",
    "ScoreWeights",
    "LicensingDeal",
    "LicensingDistribution",
    "LicensingStatus",
    "LicensingTier",
    "LicensingTierName",
    "PaymentRecord",
    "PaymentStatus",
    "PayoutSchedule",
    "RevenueDistribution",
    "RevenueSource",
    "RevenueStreamRates",
    "RoyaltySplit",
]
