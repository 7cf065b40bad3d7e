"""Tests for the policy resolver — proves it loads and resolves all config correctly."""

import json

import pytest
from decimal import Decimal
from pathlib import Path

from nyasawave.models.royalty import LicensingTierName, RevenueSource
from nyasawave.policy.resolver import PolicyResolver


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


class TestCompetitionPolicy:
    def test_prize_distribution(self, resolver: PolicyResolver) -> None:
        assert resolver.prize_distribution() == (
            Decimal("0.5"), Decimal("0.3"), Decimal("0.2"),
        )

    def test_values_are_decimal(self, resolver: PolicyResolver) -> None:
        assert all(isinstance(s, Decimal) for s in resolver.prize_distribution())
        assert isinstance(resolver.share_tolerance(), Decimal)

    def test_forfeiture_is_default(self, resolver: PolicyResolver) -> None:
        assert resolver.renormalize_on_short_roster() is False


class TestRevenuePolicy:
    def test_currency(self, resolver: PolicyResolver) -> None:
        assert resolver.currency() == "MWK"

    def test_default_split(self, resolver: PolicyResolver) -> None:
        split = resolver.default_split()
        assert split.artist == Decimal("0.70")
        assert split.platform == Decimal("0.10")
        assert split.total == Decimal("1.00")

    def test_no_source_splits_by_default(self, resolver: PolicyResolver) -> None:
        for source in RevenueSource:
            assert resolver.source_split(source) is None

    def test_stream_rates(self, resolver: PolicyResolver) -> None:
        rates = resolver.stream_rates()
        assert rates.free_rate == Decimal("0.003")
        assert rates.premium_rate == Decimal("0.010")
        assert rates.subscription_share == Decimal("0.30")

    def test_licensing_adjustment(self, resolver: PolicyResolver) -> None:
        assert resolver.licensing_adjustment() == {
            "artist": Decimal("0.10"),
            "platform": Decimal("-0.05"),
        }

    def test_every_tier_configured(self, resolver: PolicyResolver) -> None:
        tiers = resolver.licensing_tiers()
        assert set(tiers) == set(LicensingTierName)
        assert tiers[LicensingTierName.FILM_THEATRICAL].min_fee == Decimal("150000")

    def test_terms_templates(self, resolver: PolicyResolver) -> None:
        terms = resolver.licensing_terms()
        assert "Territory: {territory}" in terms
        assert "Duration: {duration_days} days" in terms

    def test_payout(self, resolver: PolicyResolver) -> None:
        assert resolver.minimum_payout() == Decimal("1000")
        assert resolver.payout_day_of_month() == 5

    def test_projection_defaults(self, resolver: PolicyResolver) -> None:
        assert resolver.projection_defaults() == {
            "premium_fraction": Decimal("0.1"),
            "track_count": Decimal("1"),
        }


class TestInvariantCheck:
    def test_repository_config_passes(self, capsys) -> None:
        import sys
        sys.path.insert(0, str(ROOT / "tools"))
        from check_invariants import check

        assert check(CONFIG_DIR) == 0
        assert "Invariant check passed." in capsys.readouterr().out

    def test_bad_split_fails(self, tmp_path: Path, capsys) -> None:
        import sys
        sys.path.insert(0, str(ROOT / "tools"))
        from check_invariants import check

        for name in ("competition_policy.json", "revenue_policy.json"):
            (tmp_path / name).write_text(
                (CONFIG_DIR / name).read_text(encoding="utf-8"), encoding="utf-8",
            )
        revenue = json.loads((tmp_path / "revenue_policy.json").read_text(encoding="utf-8"))
        revenue["default_split"]["platform"] = 0.05
        (tmp_path / "revenue_policy.json").write_text(json.dumps(revenue), encoding="utf-8")

        assert check(tmp_path) == 1
        assert "default_split must sum to 1.0" in capsys.readouterr().out
