"""NyasaWave CLI — command-line access to the scoring and royalty engines.

Usage:
    python -m nyasawave.cli record-engagement --competition T-1 --participant A --kind vote
    python -m nyasawave.cli score --competition T-1 --roster A,B,C --pool 1000
    python -m nyasawave.cli validate-split --artist 0.7 --producer 0.15 --label 0.05 --platform 0.1
    python -m nyasawave.cli stream-earning --premium
    python -m nyasawave.cli payout --revenue 50000 --share 0.7 --as-of 2026-01-15
    python -m nyasawave.cli license-proposal --tier podcast --territory MW --days 30
    python -m nyasawave.cli project-earnings --streams 10000
    python -m nyasawave.cli check-invariants

Environment (read from .env when present):
    NYASAWAVE_CONFIG_DIR   policy directory (default: config/)
    NYASAWAVE_DATA_DIR     data directory (default: data/)
    NYASAWAVE_LOG_LEVEL    logging level (default: WARNING)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

from nyasawave.competition.scorer import CompetitionScorer
from nyasawave.models.royalty import LicensingTierName, RoyaltySplit
from nyasawave.persistence.event_log import EngagementLog, EngagementRecord
from nyasawave.policy.resolver import PolicyResolver
from nyasawave.royalty.engine import RoyaltyEngine


ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG = ROOT / "config"
DEFAULT_DATA = ROOT / "data"
ENGAGEMENT_FILE = "engagement.jsonl"

logger = logging.getLogger(__name__)


def _resolver(args: argparse.Namespace) -> PolicyResolver:
    return PolicyResolver.from_config_dir(args.config)


def _as_of(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _print(data: dict) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_record_engagement(args: argparse.Namespace) -> int:
    log = EngagementLog(storage_path=args.data / ENGAGEMENT_FILE)
    event_id = args.event_id
    if event_id is None:
        sequence = log.count + 1
        while f"evt-{sequence:06d}" in log:
            sequence += 1
        event_id = f"evt-{sequence:06d}"
    record = EngagementRecord.create(
        event_id=event_id,
        competition_id=args.competition,
        participant_id=args.participant,
        kind=args.kind,
    )
    log.append(record)
    logger.info("Recorded %s for %s in %s", record.kind.value, args.participant, args.competition)
    print(f"Recorded engagement: {record.event_id}")
    return 0


def cmd_score(args: argparse.Namespace) -> int:
    scorer = CompetitionScorer(_resolver(args))
    log = EngagementLog(storage_path=args.data / ENGAGEMENT_FILE)
    shares = args.shares.split(",") if args.shares else None
    ranked, allocation = scorer.rank_and_allocate(
        [p.strip() for p in args.roster.split(",") if p.strip()],
        log.events_for(args.competition),
        args.pool,
        distribution_shares=shares,
        renormalize_on_short_roster=True if args.renormalize else None,
    )
    _print({
        "competition_id": args.competition,
        "ranking": [
            {"participant_id": e.participant_id, "score": str(e.score)}
            for e in ranked
        ],
        "allocation": allocation.to_dict(),
    })
    return 0


def cmd_validate_split(args: argparse.Namespace) -> int:
    engine = RoyaltyEngine(_resolver(args))
    split = engine.validate_split(RoyaltySplit(
        artist=args.artist, producer=args.producer,
        label=args.label, platform=args.platform,
    ))
    print(f"Split OK (total {split.total})")
    return 0


def cmd_stream_earning(args: argparse.Namespace) -> int:
    engine = RoyaltyEngine(_resolver(args))
    _print({
        "premium": args.premium,
        "artist_earning": str(engine.stream_earning(args.premium)),
    })
    return 0


def cmd_payout(args: argparse.Namespace) -> int:
    engine = RoyaltyEngine(_resolver(args))
    schedule = engine.calculate_payout(
        args.revenue, args.share, args.minimum, as_of=_as_of(args.as_of),
    )
    _print(schedule.to_dict())
    return 0


def cmd_license_proposal(args: argparse.Namespace) -> int:
    engine = RoyaltyEngine(_resolver(args))
    deal = engine.generate_licensing_proposal(
        args.tier, args.territory, args.days,
        track_id=args.track or "", as_of=_as_of(args.as_of),
    )
    _print(deal.to_dict())
    return 0


def cmd_project_earnings(args: argparse.Namespace) -> int:
    engine = RoyaltyEngine(_resolver(args))
    projected = engine.project_monthly_earnings(
        args.streams, args.premium_fraction, args.tracks,
    )
    _print({"projected_monthly_earnings": str(projected)})
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Run policy invariant checks."""
    tools_dir = ROOT / "tools"
    sys.path.insert(0, str(tools_dir))
    from check_invariants import check
    return check(args.config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nyasawave",
        description="NyasaWave — competition scoring and royalty engine CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.environ.get("NYASAWAVE_CONFIG_DIR", DEFAULT_CONFIG)),
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=Path(os.environ.get("NYASAWAVE_DATA_DIR", DEFAULT_DATA)),
        help="Path to data directory (default: data/)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("NYASAWAVE_LOG_LEVEL", "WARNING"),
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command")

    # record-engagement
    p_rec = sub.add_parser("record-engagement", help="Append an engagement event")
    p_rec.add_argument("--competition", required=True, help="Competition ID")
    p_rec.add_argument("--participant", required=True, help="Participant ID")
    p_rec.add_argument("--kind", required=True, help="vote, play, like or download")
    p_rec.add_argument("--event-id", help="Event ID (default: next sequence number)")

    # score
    p_score = sub.add_parser("score", help="Rank a competition and allocate prizes")
    p_score.add_argument("--competition", required=True, help="Competition ID")
    p_score.add_argument("--roster", required=True, help="Comma-separated participant IDs")
    p_score.add_argument("--pool", default="0", help="Prize pool (Decimal)")
    p_score.add_argument("--shares", help="Comma-separated shares (default: policy)")
    p_score.add_argument(
        "--renormalize", action="store_true",
        help="Scale shares up when the roster is shorter than the share list",
    )

    # validate-split
    p_split = sub.add_parser("validate-split", help="Validate a royalty split")
    for party in ("artist", "producer", "label", "platform"):
        p_split.add_argument(f"--{party}", required=True, help=f"{party} share")

    # stream-earning
    p_stream = sub.add_parser("stream-earning", help="Artist earning per stream")
    p_stream.add_argument("--premium", action="store_true", help="Premium stream")

    # payout
    p_pay = sub.add_parser("payout", help="Compute payout eligibility")
    p_pay.add_argument("--revenue", required=True, help="Total revenue (Decimal)")
    p_pay.add_argument("--share", required=True, help="Artist share fraction")
    p_pay.add_argument("--minimum", help="Minimum payout (default: policy)")
    p_pay.add_argument("--as-of", help="Reference date, YYYY-MM-DD (default: today)")

    # license-proposal
    p_lic = sub.add_parser("license-proposal", help="Generate a licensing proposal")
    p_lic.add_argument(
        "--tier", required=True,
        choices=[t.value for t in LicensingTierName],
        help="Licensing tier",
    )
    p_lic.add_argument("--territory", required=True, help="Territory")
    p_lic.add_argument("--days", type=int, required=True, help="Duration in days")
    p_lic.add_argument("--track", help="Track ID")
    p_lic.add_argument("--as-of", help="Start date, YYYY-MM-DD (default: now)")

    # project-earnings
    p_proj = sub.add_parser("project-earnings", help="Project monthly stream earnings")
    p_proj.add_argument("--streams", required=True, help="Average monthly streams")
    p_proj.add_argument("--premium-fraction", help="Premium listener fraction (default: policy)")
    p_proj.add_argument("--tracks", help="Track count (default: policy)")

    # check-invariants
    sub.add_parser("check-invariants", help="Run policy invariant checks")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "record-engagement": cmd_record_engagement,
        "score": cmd_score,
        "validate-split": cmd_validate_split,
        "stream-earning": cmd_stream_earning,
        "payout": cmd_payout,
        "license-proposal": cmd_license_proposal,
        "project-earnings": cmd_project_earnings,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except ValueError as exc:
        print(f"Failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
