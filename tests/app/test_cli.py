from __future__ import annotations

import json
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

import pytest

from dossier.domain.errors import UpstreamTimeoutError
from dossier.domain.model import (
    DeltaKind,
    Individual,
    Organisation,
    ReportSnapshot,
    ReportType,
    TitleReference,
)
from dossier.domain.watchlist import WatchlistSyncResult
from dossier.ui import cli

if TYPE_CHECKING:
    from pathlib import Path

    from dossier.domain.model import NotificationDelta, ReportOptions, Subject


def _snapshot(report_type: ReportType = ReportType.ASIC_CURRENT) -> ReportSnapshot:
    stamp = datetime(2025, 1, 1, tzinfo=UTC)
    return ReportSnapshot(
        report_type=report_type,
        subject_key="51824753556",
        document={"uuid": "doc-1"},
        created_at=stamp,
        updated_at=stamp,
        id=12,
    )


def test_acquire_builds_organisation_request(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_acquire(subject: Subject, report_type: str, options: ReportOptions) -> ReportSnapshot:
        captured.update(subject=subject, report_type=report_type, options=options)
        return _snapshot()

    monkeypatch.setattr(cli, "acquire_report", fake_acquire)

    cli.main(["acquire", "court", "--abn", "51 824 753 556", "--name", "ACME PTY LTD"])

    assert captured["subject"] == Organisation("51824753556", name="ACME PTY LTD")
    assert captured["report_type"] == "court"
    output = json.loads(capsys.readouterr().out)
    assert output["id"] == 12
    assert output["reportType"] == "asic-current"
    assert output["document"] == {"uuid": "doc-1"}


def test_acquire_builds_individual_and_title_options(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    def fake_acquire(subject: Subject, report_type: str, options: ReportOptions) -> ReportSnapshot:
        captured.update(subject=subject, report_type=report_type, options=options)
        return _snapshot(ReportType.LAND_TITLE_INDIVIDUAL)

    monkeypatch.setattr(cli, "acquire_report", fake_acquire)

    cli.main(
        [
            "acquire",
            "land-title-individual",
            "--given-name",
            "Jane",
            "--family-name",
            "Citizen",
            "--dob",
            "1980-02-03",
            "--state",
            "nsw",
            "--state",
            "vic",
            "--title",
            "NSW:1/234",
            "--detail",
            "CURRENT",
            "--valuation",
        ]
    )

    assert captured["subject"] == Individual("Jane", "Citizen", date_of_birth=date(1980, 2, 3))
    options = captured["options"]
    assert options.states == ("NSW", "VIC")
    assert options.title_references == (TitleReference("1/234", "NSW"),)
    assert options.detail == "CURRENT"
    assert options.include_valuation is True
    assert options.address is None


def test_acquire_builds_structured_address(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, ReportOptions] = {}

    def fake_acquire(  # noqa: ARG001
        subject: Subject, report_type: str, options: ReportOptions
    ) -> ReportSnapshot:
        captured["options"] = options
        return _snapshot(ReportType.PROPERTY)

    monkeypatch.setattr(cli, "acquire_report", fake_acquire)

    cli.main(
        [
            "acquire",
            "property",
            "--abn",
            "51824753556",
            "--street-number",
            "10",
            "--street-name",
            "Example",
            "--locality",
            "Sydney",
            "--address-state",
            "NSW",
        ]
    )

    address = captured["options"].address
    assert address is not None
    assert address.display() == "10 Example, Sydney NSW"


@pytest.mark.parametrize(
    "argv",
    [
        ["acquire", "asic-current"],
        ["acquire", "director-ppsr", "--family-name", "Citizen", "--dob", "03/02/1980"],
        ["acquire", "land-title-organisation", "--abn", "1", "--title", "no-separator"],
    ],
)
def test_invalid_input_exits_with_code_two(
    monkeypatch: pytest.MonkeyPatch, argv: list[str]
) -> None:
    monkeypatch.setattr(cli, "acquire_report", lambda *_args: pytest.fail("should not run"))

    with pytest.raises(SystemExit) as exc:
        cli.main(argv)

    assert exc.value.code == 2


def test_acquisition_errors_exit_with_code_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing(*_args: object) -> ReportSnapshot:
        raise UpstreamTimeoutError("too slow")

    monkeypatch.setattr(cli, "acquire_report", failing)

    with pytest.raises(SystemExit) as exc:
        cli.main(["acquire", "ppsr", "--abn", "51824753556"])

    assert exc.value.code == 1


def test_check_reports_missing_snapshot(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "check_existing_report", lambda *_args: None)

    with pytest.raises(SystemExit) as exc:
        cli.main(["check", "ppsr", "51824753556"])

    assert exc.value.code == 3


def test_check_prints_stored_snapshot(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    calls: list[tuple[str, str]] = []

    def fake_check(report_type: str, subject_key: str) -> ReportSnapshot:
        calls.append((report_type, subject_key))
        return _snapshot()

    monkeypatch.setattr(cli, "check_existing_report", fake_check)

    cli.main(["check", "ato", "51824753556"])

    assert calls == [("ato", "51824753556")]
    assert json.loads(capsys.readouterr().out)["subjectKey"] == "51824753556"


def test_apply_delta_reads_notification_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    received: list[NotificationDelta] = []

    def fake_apply(delta: NotificationDelta) -> ReportSnapshot:
        received.append(delta)
        return _snapshot()

    monkeypatch.setattr(cli, "apply_notification", fake_apply)
    path = tmp_path / "delta.json"
    path.write_text(
        json.dumps(
            {
                "targetSubjectKey": "51824753556",
                "targetReportType": "court",
                "kind": "newCase",
                "payload": {"caseNumber": "2025/001"},
            }
        ),
        encoding="utf-8",
    )

    cli.main(["apply-delta", str(path)])

    assert received[0].kind is DeltaKind.NEW_CASE
    assert received[0].payload == {"caseNumber": "2025/001"}


def test_apply_delta_rejects_malformed_notification(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(cli, "apply_notification", lambda *_args: pytest.fail("should not run"))
    path = tmp_path / "delta.json"
    path.write_text(json.dumps({"kind": "somethingElse"}), encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        cli.main(["apply-delta", str(path)])

    assert exc.value.code == 2


def test_watchlist_sync_prints_summary(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(
        cli,
        "sync_watchlist",
        lambda: WatchlistSyncResult(
            alert_counts={"51824753556": 2}, entity_ids={"51824753556": "7"}, updated=1
        ),
    )

    cli.main(["watchlist-sync"])

    assert json.loads(capsys.readouterr().out) == {
        "alertCounts": {"51824753556": 2},
        "entityIds": {"51824753556": "7"},
        "updated": 1,
    }
