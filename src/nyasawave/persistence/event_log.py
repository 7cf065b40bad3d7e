"""Append-only engagement log — votes, plays, likes and downloads.

Every engagement attributable to a competition entry is appended here
once and never modified. The log is what the scorer reads (scoped to
one competition at a time) and is the audit trail behind every set of
published winners.

Each record carries a SHA-256 of its canonical JSON, checked again when
the log is loaded back from disk.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from nyasawave.models.competition import EngagementEvent, EngagementKind


def _canonical_hash(fields: dict[str, Any]) -> str:
    canonical = json.dumps(fields, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"


def _hash_fields(
    event_id: str,
    competition_id: str,
    participant_id: str,
    kind: str,
    timestamp_utc: str,
    voter_id: str = "",
) -> dict[str, Any]:
    fields = {
        "event_id": event_id,
        "competition_id": competition_id,
        "participant_id": participant_id,
        "kind": kind,
        "timestamp_utc": timestamp_utc,
    }
    if voter_id:
        fields["voter_id"] = voter_id
    return fields


@dataclass(frozen=True)
class EngagementRecord:
    """A single immutable engagement in the log."""
    event_id: str
    competition_id: str
    participant_id: str
    kind: EngagementKind
    timestamp_utc: str
    event_hash: str
    voter_id: str = ""

    @staticmethod
    def create(
        event_id: str,
        competition_id: str,
        participant_id: str,
        kind: EngagementKind,
        timestamp_utc: Optional[datetime] = None,
        voter_id: str = "",
    ) -> EngagementRecord:
        """Create a new record with computed hash.

        voter_id is optional; it only enters the hash when set, so
        records written without one keep their original hash.

        Raises ValidationError for an unknown kind.
        """
        kind = EngagementKind.parse(kind)
        ts = timestamp_utc or datetime.now(timezone.utc)
        ts_str = ts.strftime("%Y-%m-%dT%H:%M:%SZ")
        return EngagementRecord(
            event_id=event_id,
            competition_id=competition_id,
            participant_id=participant_id,
            kind=kind,
            timestamp_utc=ts_str,
            event_hash=_canonical_hash(_hash_fields(
                event_id, competition_id, participant_id, kind.value, ts_str, voter_id,
            )),
            voter_id=voter_id,
        )

    @property
    def day(self) -> str:
        """UTC calendar day of the record, YYYY-MM-DD."""
        return self.timestamp_utc[:10]

    def to_event(self) -> EngagementEvent:
        return EngagementEvent(
            participant_id=self.participant_id,
            competition_id=self.competition_id,
            kind=self.kind,
            timestamp_utc=datetime.strptime(
                self.timestamp_utc, "%Y-%m-%dT%H:%M:%SZ",
            ).replace(tzinfo=timezone.utc),
        )


class EngagementLog:
    """Append-only engagement log with optional JSONL persistence.

    Records can only be appended, never modified or deleted.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._records: list[EngagementRecord] = []
        self._storage_path = storage_path
        self._event_ids: set[str] = set()

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    def append(self, record: EngagementRecord) -> None:
        """Append a record to the log.

        Raises ValueError if event_id is a duplicate (replay protection).
        """
        if record.event_id in self._event_ids:
            raise ValueError(f"Duplicate event ID: {record.event_id}")

        self._records.append(record)
        self._event_ids.add(record.event_id)

        if self._storage_path:
            self._append_to_file(record)

    def records(self, competition_id: Optional[str] = None) -> list[EngagementRecord]:
        if competition_id is None:
            return list(self._records)
        return [r for r in self._records if r.competition_id == competition_id]

    def events_for(self, competition_id: str) -> list[EngagementEvent]:
        """Return the competition-scoped event list the scorer expects."""
        return [r.to_event() for r in self.records(competition_id)]

    @property
    def count(self) -> int:
        return len(self._records)

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._event_ids

    def has_vote(
        self,
        competition_id: str,
        participant_id: str,
        voter_id: str,
        day: str,
    ) -> bool:
        """True if voter_id already voted for participant_id on day (YYYY-MM-DD)."""
        return any(
            r.kind == EngagementKind.VOTE
            and r.participant_id == participant_id
            and r.voter_id == voter_id
            and r.day == day
            for r in self.records(competition_id)
        )

    def _append_to_file(self, record: EngagementRecord) -> None:
        data = {
            "event_id": record.event_id,
            "competition_id": record.competition_id,
            "participant_id": record.participant_id,
            "kind": record.kind.value,
            "timestamp_utc": record.timestamp_utc,
            "event_hash": record.event_hash,
        }
        if record.voter_id:
            data["voter_id"] = record.voter_id
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        with self._storage_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(data, sort_keys=True, ensure_ascii=False) + "\n")

    def _load_from_file(self, path: Path) -> None:
        """Load records from a JSONL file with integrity verification.

        Rejects tampered records (hash mismatch) and duplicate IDs.
        """
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)
                event_id = data["event_id"]

                if event_id in self._event_ids:
                    raise ValueError(
                        f"Duplicate event ID on recovery (line {line_num}): {event_id}"
                    )

                voter_id = data.get("voter_id", "")
                expected_hash = _canonical_hash(_hash_fields(
                    data["event_id"],
                    data["competition_id"],
                    data["participant_id"],
                    data["kind"],
                    data["timestamp_utc"],
                    voter_id,
                ))
                if data["event_hash"] != expected_hash:
                    raise ValueError(
                        f"Integrity check failed (line {line_num}): event {event_id} "
                        f"stored hash {data['event_hash']} != computed {expected_hash}"
                    )

                record = EngagementRecord(
                    event_id=event_id,
                    competition_id=data["competition_id"],
                    participant_id=data["participant_id"],
                    kind=EngagementKind.parse(data["kind"]),
                    timestamp_utc=data["timestamp_utc"],
                    event_hash=data["event_hash"],
                    voter_id=voter_id,
                )
                self._records.append(record)
                self._event_ids.add(event_id)
