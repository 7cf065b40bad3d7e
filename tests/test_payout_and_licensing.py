"""Tests for payout scheduling, licensing proposals and payment records."""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

from nyasawave.errors import ValidationError
from nyasawave.models.royalty import (
    LicensingStatus,
    LicensingTierName,
    PaymentStatus,
    RevenueSource,
)
from nyasawave.policy.resolver import PolicyResolver
from nyasawave.royalty.engine import RoyaltyEngine


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


@pytest.fixture
def engine(resolver: PolicyResolver) -> RoyaltyEngine:
    return RoyaltyEngine(resolver)


def _now() -> datetime:
    return datetime(2026, 1, 15, 9, 30, 0, tzinfo=timezone.utc)


class TestCalculatePayout:
    def test_reference_payout(self, engine: RoyaltyEngine) -> None:
        schedule = engine.calculate_payout(50000, 0.7, 1000, as_of=_now())
        assert schedule.amount == Decimal("35000")
        assert schedule.payable is True
        assert schedule.next_payout_date == date(2026, 2, 5)

    def test_below_minimum_not_payable(self, engine: RoyaltyEngine) -> None:
        schedule = engine.calculate_payout(1000, "0.7", 1000, as_of=_now())
        assert schedule.amount == Decimal("700")
        assert schedule.payable is False

    def test_exact_minimum_payable(self, engine: RoyaltyEngine) -> None:
        schedule = engine.calculate_payout(2000, "0.5", 1000, as_of=_now())
        assert schedule.payable is True

    def test_minimum_from_policy(self, engine: RoyaltyEngine) -> None:
        schedule = engine.calculate_payout(1000, "0.99", as_of=_now())
        assert schedule.minimum_payout == Decimal("1000")
        assert schedule.payable is False

    def test_december_rolls_to_january(self, engine: RoyaltyEngine) -> None:
        as_of = datetime(2026, 12, 31, 23, 59, tzinfo=timezone.utc)
        schedule = engine.calculate_payout(100, "0.7", as_of=as_of)
        assert schedule.next_payout_date == date(2027, 1, 5)

    def test_offset_datetime_read_in_utc(self, engine: RoyaltyEngine) -> None:
        """23:30 at UTC-2 on 31 January is already 1 February in UTC."""
        as_of = datetime(2026, 1, 31, 23, 30, tzinfo=timezone(timedelta(hours=-2)))
        schedule = engine.calculate_payout(100, "0.7", as_of=as_of)
        assert schedule.next_payout_date == date(2026, 3, 5)

    def test_accepts_plain_date(self, engine: RoyaltyEngine) -> None:
        schedule = engine.calculate_payout(100, "0.7", as_of=date(2026, 6, 1))
        assert schedule.next_payout_date == date(2026, 7, 5)

    def test_defaults_to_current_time(self, engine: RoyaltyEngine) -> None:
        schedule = engine.calculate_payout(100, "0.7")
        today = datetime.now(timezone.utc).date()
        assert schedule.next_payout_date > today
        assert schedule.next_payout_date.day == 5

    def test_rounded_amount(self, engine: RoyaltyEngine) -> None:
        schedule = engine.calculate_payout("1234.567", "1", 0, as_of=_now())
        assert schedule.amount == Decimal("1234.567")
        assert schedule.amount_rounded == Decimal("1234.57")

    def test_share_out_of_range(self, engine: RoyaltyEngine) -> None:
        with pytest.raises(ValidationError, match="artist_share_fraction"):
            engine.calculate_payout(100, "1.5", as_of=_now())

    def test_negative_revenue(self, engine: RoyaltyEngine) -> None:
        with pytest.raises(ValidationError, match="total_revenue"):
            engine.calculate_payout(-100, "0.5", as_of=_now())

    def test_to_dict(self, engine: RoyaltyEngine) -> None:
        data = engine.calculate_payout(50000, "0.7", 1000, as_of=_now()).to_dict()
        assert data["next_payout_date"] == "2026-02-05"
        assert data["payable"] is True


class TestNextPayoutDate:
    @pytest.mark.parametrize("as_of, expected", [
        (date(2026, 1, 1), date(2026, 2, 5)),
        (date(2026, 1, 31), date(2026, 2, 5)),
        (date(2026, 11, 30), date(2026, 12, 5)),
        (date(2026, 12, 1), date(2027, 1, 5)),
        (date(2028, 2, 29), date(2028, 3, 5)),
    ])
    def test_following_month(self, engine: RoyaltyEngine, as_of: date, expected: date) -> None:
        assert engine.next_payout_date(as_of) == expected


class TestLicensingProposal:
    def test_podcast_proposal(self, engine: RoyaltyEngine) -> None:
        deal = engine.generate_licensing_proposal(
            "podcast", "Malawi", 30, track_id="trk-1", as_of=_now(),
        )
        assert deal.tier == LicensingTierName.PODCAST
        assert deal.fee == Decimal("15000")
        assert deal.currency == "MWK"
        assert deal.status == LicensingStatus.PENDING
        assert deal.licensee == "TO_BE_DETERMINED"
        assert deal.start_utc == _now()
        assert deal.end_utc == _now() + timedelta(days=30)
        assert deal.deal_id.startswith("LICENSE-")

    @pytest.mark.parametrize("tier, fee", [
        ("commercial_video", "50000"),
        ("film_theatrical", "150000"),
        ("podcast", "15000"),
        ("radio", "20000"),
        ("education", "30000"),
    ])
    def test_minimum_fee_per_tier(self, engine: RoyaltyEngine, tier: str, fee: str) -> None:
        deal = engine.generate_licensing_proposal(tier, "MW", 10, as_of=_now())
        assert deal.fee == Decimal(fee)

    def test_unknown_tier_rejected(self, engine: RoyaltyEngine) -> None:
        """No silent fallback to the commercial video tier."""
        with pytest.raises(ValidationError, match="Unknown licensing tier"):
            engine.generate_licensing_proposal("BILLBOARD", "MW", 10, as_of=_now())

    def test_tier_name_case_insensitive(self, engine: RoyaltyEngine) -> None:
        deal = engine.generate_licensing_proposal("RADIO", "MW", 10, as_of=_now())
        assert deal.tier == LicensingTierName.RADIO

    @pytest.mark.parametrize("tier, expected", [
        ("commercial-video", LicensingTierName.COMMERCIAL_VIDEO),
        ("film-theatrical", LicensingTierName.FILM_THEATRICAL),
        ("FILM_THEATRICAL", LicensingTierName.FILM_THEATRICAL),
        (" Podcast ", LicensingTierName.PODCAST),
    ])
    def test_tier_name_spellings(
        self, engine: RoyaltyEngine, tier: str, expected: LicensingTierName,
    ) -> None:
        deal = engine.generate_licensing_proposal(tier, "MW", 30, as_of=_now())
        assert deal.tier == expected

    def test_terms_mention_territory_and_duration(self, engine: RoyaltyEngine) -> None:
        deal = engine.generate_licensing_proposal("radio", "Southern Region", 90, as_of=_now())
        assert deal.terms == (
            "Non-exclusive license",
            "Territory: Southern Region",
            "Duration: 90 days",
            "Credit required in all uses",
            "Commercial use only (non-exclusive)",
        )

    def test_deterministic(self, engine: RoyaltyEngine) -> None:
        first = engine.generate_licensing_proposal("radio", "MW", 10, "t", as_of=_now())
        second = engine.generate_licensing_proposal("radio", "MW", 10, "t", as_of=_now())
        assert first == second

    def test_deal_id_depends_on_inputs(self, engine: RoyaltyEngine) -> None:
        first = engine.generate_licensing_proposal("radio", "MW", 10, as_of=_now())
        second = engine.generate_licensing_proposal("radio", "ZA", 10, as_of=_now())
        assert first.deal_id != second.deal_id

    @pytest.mark.parametrize("days", [0, -5, 2.5, True])
    def test_invalid_duration(self, engine: RoyaltyEngine, days) -> None:
        with pytest.raises(ValidationError, match="duration_days"):
            engine.generate_licensing_proposal("radio", "MW", days, as_of=_now())

    def test_empty_territory(self, engine: RoyaltyEngine) -> None:
        with pytest.raises(ValidationError, match="territory"):
            engine.generate_licensing_proposal("radio", "", 10, as_of=_now())

    def test_to_dict(self, engine: RoyaltyEngine) -> None:
        data = engine.generate_licensing_proposal("education", "MW", 365, as_of=_now()).to_dict()
        assert data["tier"] == "education"
        assert data["fee"] == "30000"
        assert data["status"] == "pending"


class TestLicensingQuote:
    def test_minimum_only(self, engine: RoyaltyEngine) -> None:
        assert engine.quote_licensing_fee("film_theatrical") == Decimal("150000")

    def test_per_use_increment(self, engine: RoyaltyEngine) -> None:
        assert engine.quote_licensing_fee("commercial_video", uses=3) == Decimal("65000")

    def test_education_flat(self, engine: RoyaltyEngine) -> None:
        assert engine.quote_licensing_fee("education", uses=10) == Decimal("30000")

    def test_negative_uses(self, engine: RoyaltyEngine) -> None:
        with pytest.raises(ValidationError, match="uses"):
            engine.quote_licensing_fee("radio", uses=-1)


class TestPaymentRecord:
    def test_pending_record(self, engine: RoyaltyEngine) -> None:
        record = engine.create_payment_record(
            "artist-1", "125.50", "streams", "2026-01", as_of=_now(),
        )
        assert record.artist_id == "artist-1"
        assert record.amount == Decimal("125.50")
        assert record.source == RevenueSource.STREAMS
        assert record.status == PaymentStatus.PENDING
        assert record.created_utc == _now()
        assert record.record_id.startswith("PAY-")

    def test_sequence_distinguishes_identical_entries(self, engine: RoyaltyEngine) -> None:
        first = engine.create_payment_record("artist-1", 700, "streams", "2026-01", as_of=_now())
        again = engine.create_payment_record("artist-1", 700, "streams", "2026-01", as_of=_now())
        second = engine.create_payment_record(
            "artist-1", 700, "streams", "2026-01", as_of=_now(), sequence=1,
        )
        assert first.record_id == again.record_id
        assert first.record_id != second.record_id

    @pytest.mark.parametrize("period", ["2026-13", "2026-1", "26-01", "January"])
    def test_bad_period(self, engine: RoyaltyEngine, period: str) -> None:
        with pytest.raises(ValidationError, match="YYYY-MM"):
            engine.create_payment_record("artist-1", 1, "streams", period, as_of=_now())

    def test_unknown_source(self, engine: RoyaltyEngine) -> None:
        with pytest.raises(ValidationError, match="revenue source"):
            engine.create_payment_record("artist-1", 1, "merch", "2026-01", as_of=_now())

    def test_missing_artist(self, engine: RoyaltyEngine) -> None:
        with pytest.raises(ValidationError, match="artist_id"):
            engine.create_payment_record("", 1, "streams", "2026-01", as_of=_now())
