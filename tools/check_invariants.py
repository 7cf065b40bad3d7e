#!/usr/bin/env python3
"""NyasaWave invariant checks against the policy files in config/."""

import json
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
CONFIG_DIR = ROOT / "config"
SPLIT_PARTIES = ("artist", "producer", "label", "platform")
ENGAGEMENT_KINDS = ("vote", "play", "like", "download")
LICENSING_TIERS = ("commercial_video", "film_theatrical", "podcast", "radio", "education")


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check_split(split: dict, label: str, tolerance: float, errors: list[str]) -> None:
    """Validate a royalty split names every party and sums to 1.0."""
    for party in SPLIT_PARTIES:
        if party not in split:
            errors.append(f"{label} missing party: {party}")
        elif not (0.0 <= split[party] <= 1.0):
            errors.append(f"{label}.{party} must be in [0, 1], got {split[party]}")
    total = sum(split.get(p, 0.0) for p in SPLIT_PARTIES)
    if abs(total - 1.0) >= tolerance:
        errors.append(f"{label} must sum to 1.0, got {total}")


def check(config_dir: Path = CONFIG_DIR) -> int:
    competition = load_json(Path(config_dir) / "competition_policy.json")
    revenue = load_json(Path(config_dir) / "revenue_policy.json")
    errors: list[str] = []

    # --- Score weight invariants ---
    weights = competition["score_weights"]
    for kind in ENGAGEMENT_KINDS:
        if kind not in weights:
            errors.append(f"score_weights missing kind: {kind}")
        elif weights[kind] < 0:
            errors.append(f"score_weights.{kind} must be >= 0, got {weights[kind]}")
    for kind in weights:
        if kind not in ENGAGEMENT_KINDS:
            errors.append(f"score_weights has unknown kind: {kind}")

    # --- Prize distribution invariants ---
    shares = competition["prize_distribution"]
    for i, share in enumerate(shares):
        if not (0.0 <= share <= 1.0):
            errors.append(f"prize_distribution[{i}] must be in [0, 1], got {share}")
    if sum(shares) > 1.0 + competition.get("share_tolerance", 1e-9):
        errors.append(f"prize_distribution must sum to <= 1.0, got {sum(shares)}")
    # Higher places never pay less than lower places
    for i in range(len(shares) - 1):
        if shares[i] < shares[i + 1]:
            errors.append(
                f"prize_distribution[{i}] must be >= prize_distribution[{i + 1}]"
            )

    # --- Royalty split invariants ---
    tolerance = revenue.get("split_tolerance", 0.001)
    check_split(revenue["default_split"], "default_split", tolerance, errors)
    for source, split in revenue.get("source_splits", {}).items():
        check_split(split, f"source_splits.{source}", tolerance, errors)

    # --- Licensing invariants ---
    default = revenue["default_split"]
    adjustment = revenue.get("licensing_adjustment", {})
    for party in ("artist", "platform"):
        adjusted = default.get(party, 0.0) + adjustment.get(party, 0.0)
        if not (0.0 <= adjusted <= 1.0):
            errors.append(f"licensing {party} share must be in [0, 1], got {adjusted}")
    tiers = revenue["licensing_tiers"]
    for tier in LICENSING_TIERS:
        if tier not in tiers:
            errors.append(f"licensing_tiers missing tier: {tier}")
            continue
        if tiers[tier]["min_fee"] < 0:
            errors.append(f"licensing_tiers.{tier}.min_fee must be >= 0")
        if tiers[tier].get("per_use", 0) < 0:
            errors.append(f"licensing_tiers.{tier}.per_use must be >= 0")

    # --- Stream rate invariants ---
    rates = revenue["stream_rates"]
    if rates["free"] < 0 or rates["premium"] < 0:
        errors.append("stream rates must be >= 0")
    if rates["premium"] < rates["free"]:
        errors.append("premium stream rate must be >= free stream rate")
    if not (0.0 <= rates["subscription_share"] <= 1.0):
        errors.append("subscription_share must be in [0, 1]")

    # --- Payout invariants ---
    payout = revenue["payout"]
    if payout["minimum_payout"] < 0:
        errors.append("minimum_payout must be >= 0")
    if not (1 <= payout.get("payout_day_of_month", 5) <= 28):
        errors.append("payout_day_of_month must be in [1, 28]")

    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"- {err}")
        return 1

    print("Invariant check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(check())
