"""Royalty package: revenue splits, per-stream earnings, licensing, payouts."""

from nyasawave.royalty.engine import RoyaltyEngine
from nyasawave.royalty.ledger import EarningsLedger

__all__ = [
    "EarningsLedger",
    "RoyaltyEngine",
]
