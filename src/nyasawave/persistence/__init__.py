"""Durable storage for engagement events."""

from nyasawave.persistence.event_log import EngagementLog, EngagementRecord

__all__ = ["EngagementLog", "EngagementRecord"]
