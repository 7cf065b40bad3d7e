"""Tests for NyasaWave CLI — proves CLI dispatches correctly."""

import json

import pytest
from datetime import timedelta, timezone
from pathlib import Path

from nyasawave.cli import _as_of, build_parser, main


def _run(tmp_path: Path, *argv: str) -> int:
    return main(["--data", str(tmp_path), *argv])


class TestCLIParsing:
    def test_score_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([
            "score", "--competition", "T-1", "--roster", "A,B,C", "--pool", "1000",
        ])
        assert args.command == "score"
        assert args.roster == "A,B,C"
        assert args.renormalize is False

    def test_license_proposal_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([
            "license-proposal", "--tier", "podcast", "--territory", "MW", "--days", "30",
        ])
        assert args.tier == "podcast"
        assert args.days == 30

    def test_unknown_tier_rejected_by_parser(self) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args([
                "license-proposal", "--tier", "billboard", "--territory", "MW", "--days", "30",
            ])


class TestCLIExecution:
    def test_no_command_shows_help(self, capsys) -> None:
        assert main([]) == 0
        assert "nyasawave" in capsys.readouterr().out

    def test_check_invariants_runs(self) -> None:
        assert main(["check-invariants"]) == 0

    def test_record_and_score_e2e(self, tmp_path: Path, capsys) -> None:
        for participant, kind in [("A", "vote"), ("A", "vote"), ("B", "like"), ("C", "download")]:
            assert _run(
                tmp_path, "record-engagement",
                "--competition", "T-1", "--participant", participant, "--kind", kind,
            ) == 0
        assert (tmp_path / "engagement.jsonl").exists()
        capsys.readouterr()

        assert _run(
            tmp_path, "score", "--competition", "T-1", "--roster", "A,B,C", "--pool", "1000",
        ) == 0
        output = json.loads(capsys.readouterr().out)
        assert [r["participant_id"] for r in output["ranking"]] == ["C", "A", "B"]
        assert output["allocation"]["allocated_total"] == "1000.0"

    def test_generated_event_id_skips_explicit_ids(self, tmp_path: Path, capsys) -> None:
        assert _run(
            tmp_path, "record-engagement", "--competition", "T-1",
            "--participant", "A", "--kind", "vote", "--event-id", "evt-000002",
        ) == 0
        assert _run(
            tmp_path, "record-engagement", "--competition", "T-1",
            "--participant", "B", "--kind", "vote",
        ) == 0
        assert "evt-000003" in capsys.readouterr().out.splitlines()[-1]

    def test_record_unknown_kind_fails(self, tmp_path: Path, capsys) -> None:
        exit_code = _run(
            tmp_path, "record-engagement",
            "--competition", "T-1", "--participant", "A", "--kind", "share",
        )
        assert exit_code == 1
        assert "Unknown engagement kind" in capsys.readouterr().err

    def test_score_empty_roster_fails(self, tmp_path: Path) -> None:
        assert _run(tmp_path, "score", "--competition", "T-1", "--roster", ",") == 1

    def test_validate_split_ok(self, capsys) -> None:
        exit_code = main([
            "validate-split", "--artist", "0.7", "--producer", "0.15",
            "--label", "0.05", "--platform", "0.1",
        ])
        assert exit_code == 0
        assert "Split OK" in capsys.readouterr().out

    def test_validate_split_fails(self, capsys) -> None:
        exit_code = main([
            "validate-split", "--artist", "0.7", "--producer", "0.15",
            "--label", "0.05", "--platform", "0.05",
        ])
        assert exit_code == 1
        assert "sum to 1.0" in capsys.readouterr().err

    def test_payout(self, capsys) -> None:
        exit_code = main([
            "payout", "--revenue", "50000", "--share", "0.7",
            "--minimum", "1000", "--as-of", "2026-01-15",
        ])
        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["payable"] is True
        assert output["next_payout_date"] == "2026-02-05"

    def test_payout_keeps_explicit_offset(self, capsys) -> None:
        exit_code = main([
            "payout", "--revenue", "50000", "--share", "0.7",
            "--as-of", "2026-01-31T23:30:00-02:00",
        ])
        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["next_payout_date"] == "2026-03-05"

    def test_as_of_naive_is_utc(self) -> None:
        assert _as_of("2026-01-15").tzinfo == timezone.utc
        assert _as_of("2026-01-15T10:00:00+02:00").utcoffset() == timedelta(hours=2)
        assert _as_of(None) is None

    def test_license_proposal(self, capsys) -> None:
        exit_code = main([
            "license-proposal", "--tier", "radio", "--territory", "MW",
            "--days", "30", "--as-of", "2026-01-15",
        ])
        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["fee"] == "20000"
        assert output["end_utc"].startswith("2026-02-14")

    def test_stream_earning(self, capsys) -> None:
        assert main(["stream-earning", "--premium"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["artist_earning"] == "0.00700"

    def test_project_earnings(self, capsys) -> None:
        assert main(["project-earnings", "--streams", "10000"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert float(output["projected_monthly_earnings"]) == pytest.approx(25.9)
