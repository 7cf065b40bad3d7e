"""Policy resolver — typed access to the JSON policy under config/.

Two files make up the policy:
- competition_policy.json: score weights, prize distribution shares
- revenue_policy.json: royalty splits, stream rates, licensing tiers,
  payout schedule

Numbers are parsed straight to Decimal so policy values never pass
through binary floating point. The resolver only parses; the engines
validate what they are given.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from nyasawave.models.competition import ScoreWeights
from nyasawave.models.royalty import (
    LicensingTier,
    LicensingTierName,
    RevenueSource,
    RevenueStreamRates,
    RoyaltySplit,
)


COMPETITION_POLICY_FILE = "competition_policy.json"
REVENUE_POLICY_FILE = "revenue_policy.json"


def _load_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle, parse_float=Decimal)


def _dec(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class PolicyResolver:
    """Resolves competition and revenue policy values.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        weights = resolver.score_weights()
        split = resolver.default_split()
    """

    def __init__(
        self,
        competition_policy: dict[str, Any],
        revenue_policy: dict[str, Any],
    ) -> None:
        self._competition = competition_policy
        self._revenue = revenue_policy

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        config_dir = Path(config_dir)
        return cls(
            competition_policy=_load_json(config_dir / COMPETITION_POLICY_FILE),
            revenue_policy=_load_json(config_dir / REVENUE_POLICY_FILE),
        )

    # ------------------------------------------------------------------
    # Competition policy
    # ------------------------------------------------------------------

    def score_weights(self) -> ScoreWeights:
        return ScoreWeights.from_mapping(self._competition["score_weights"])

    def prize_distribution(self) -> tuple[Decimal, ...]:
        return tuple(_dec(s) for s in self._competition["prize_distribution"])

    def share_tolerance(self) -> Decimal:
        return _dec(self._competition.get("share_tolerance", "1e-9"))

    def renormalize_on_short_roster(self) -> bool:
        return bool(self._competition.get("renormalize_on_short_roster", False))

    # ------------------------------------------------------------------
    # Revenue policy
    # ------------------------------------------------------------------

    def currency(self) -> str:
        return self._revenue.get("currency", "MWK")

    def split_tolerance(self) -> Decimal:
        return _dec(self._revenue.get("split_tolerance", "0.001"))

    def default_split(self) -> RoyaltySplit:
        return RoyaltySplit.from_mapping(self._revenue["default_split"])

    def source_split(self, source: RevenueSource) -> Optional[RoyaltySplit]:
        """Return the split configured for a revenue source, if any."""
        shares = self._revenue.get("source_splits", {}).get(source.value)
        if shares is None:
            return None
        return RoyaltySplit.from_mapping(shares)

    def stream_rates(self) -> RevenueStreamRates:
        rates = self._revenue["stream_rates"]
        return RevenueStreamRates(
            free_rate=_dec(rates["free"]),
            premium_rate=_dec(rates["premium"]),
            subscription_share=_dec(rates["subscription_share"]),
        )

    def default_subscription_fee(self) -> Decimal:
        return _dec(self._revenue.get("default_subscription_fee", 5000))

    def licensing_adjustment(self) -> dict[str, Decimal]:
        """Return the per-party share adjustment applied to licensing income."""
        adjustment = self._revenue.get("licensing_adjustment", {})
        return {party: _dec(delta) for party, delta in adjustment.items()}

    def licensing_tiers(self) -> dict[LicensingTierName, LicensingTier]:
        tiers: dict[LicensingTierName, LicensingTier] = {}
        for name, data in self._revenue["licensing_tiers"].items():
            tier_name = LicensingTierName.parse(name)
            tiers[tier_name] = LicensingTier(
                name=tier_name,
                min_fee=_dec(data["min_fee"]),
                per_use=_dec(data.get("per_use", 0)),
                description=data.get("description", ""),
            )
        return tiers

    def licensing_terms(self) -> list[str]:
        return list(self._revenue.get("licensing_terms", []))

    def minimum_payout(self) -> Decimal:
        return _dec(self._revenue["payout"]["minimum_payout"])

    def payout_day_of_month(self) -> int:
        return int(self._revenue["payout"].get("payout_day_of_month", 5))

    def projection_defaults(self) -> dict[str, Decimal]:
        projection = self._revenue.get("projection", {})
        return {
            "premium_fraction": _dec(projection.get("premium_fraction", "0.1")),
            "track_count": _dec(projection.get("track_count", 1)),
        }
