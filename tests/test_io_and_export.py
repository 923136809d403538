from __future__ import annotations

import csv
import io
import json
from pathlib import Path

import pytest

from alertprio.core.blocklist import BlockedIPSet
from alertprio.core.pipeline import process_batch
from alertprio.io.tabular import ParseError, load_batch, parse_csv_text, read_csv, read_jsonl
from alertprio.ui.report_export import alerts_to_csv, report_to_csv_rows, report_to_json, write_report_files


def test_parse_csv_ignores_column_order_and_blank_lines():
    text = "SourceTrust,AlertID\n\n0.5, A-1 \n1,A-2\n"
    rows = parse_csv_text(text)
    assert rows == [{"SourceTrust": "0.5", "AlertID": "A-1"}, {"SourceTrust": "1", "AlertID": "A-2"}]


def test_short_rows_leave_columns_out():
    rows = parse_csv_text("AlertID,SourceIP,Timestamp\nA-1,10.0.0.1\n")
    assert rows == [{"AlertID": "A-1", "SourceIP": "10.0.0.1"}]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "\n\n",
        "AlertID,,SourceIP\nA-1,x,y\n",
        "AlertID,AlertID\nA-1,A-2\n",
        "AlertID,SourceIP\nA-1,10.0.0.1,extra\n",
    ],
)
def test_bad_csv_raises_parse_error(text):
    with pytest.raises(ParseError):
        parse_csv_text(text)


def test_parse_error_carries_line_number():
    with pytest.raises(ParseError) as exc:
        parse_csv_text("AlertID\nA-1\nA-2,oops\n", source="alerts.csv")
    assert exc.value.line == 3
    assert "alerts.csv:3" in str(exc.value)


def test_read_csv_strips_bom_and_rejects_binary(tmp_path: Path):
    p = tmp_path / "a.csv"
    p.write_text("\ufeffAlertID,SourceTrust\nA-1,0.5\n", encoding="utf-8")
    assert read_csv(p) == [{"AlertID": "A-1", "SourceTrust": "0.5"}]
    bad = tmp_path / "b.csv"
    bad.write_bytes(b"AlertID\n\xff\xfe\xfa\n")
    with pytest.raises(ParseError):
        read_csv(bad)


def test_read_jsonl(tmp_path: Path):
    p = tmp_path / "e.jsonl"
    p.write_text('{"AlertID":"A-1","SourceTrust":0.5}\n\n{"AlertID":"A-2"}\n', encoding="utf-8")
    rows = read_jsonl(p)
    assert rows[0]["SourceTrust"] == 0.5 and rows[1]["AlertID"] == "A-2"


@pytest.mark.parametrize("body", ['{"AlertID":"A-1"}\n{broken\n', '{"AlertID":"A-1"}\n[1, 2]\n'])
def test_bad_jsonl_raises_without_partial_batch(tmp_path: Path, body: str):
    p = tmp_path / "e.jsonl"
    p.write_text(body, encoding="utf-8")
    with pytest.raises(ParseError) as exc:
        read_jsonl(p)
    assert exc.value.line == 2


def test_load_batch_dispatches_on_suffix(tmp_path: Path):
    c = tmp_path / "a.csv"
    c.write_text("AlertID\nA-1\n", encoding="utf-8")
    j = tmp_path / "a.ndjson"
    j.write_text('{"AlertID":"A-1"}\n', encoding="utf-8")
    assert load_batch(c) == load_batch(j) == [{"AlertID": "A-1"}]
    with pytest.raises(ParseError):
        load_batch(tmp_path / "a.xlsx")
    with pytest.raises(ParseError):
        load_batch(tmp_path / "missing.csv")


def _result(make_alert, critical_signals):
    raw = [make_alert(critical_signals, IncidentType="Ransomware")] + [
        make_alert(SourceIP="10.0.0.5", IncidentType="Port Scan") for _ in range(6)
    ]
    return process_batch(raw, BlockedIPSet(), file_name="alerts.csv")


def test_report_json_uses_wire_names(make_alert, critical_signals):
    data = json.loads(report_to_json(_result(make_alert, critical_signals).report))
    for key in (
        "totalAlerts",
        "afterCleaning",
        "duplicatesRemoved",
        "blockedIPs",
        "criticalCount",
        "highCount",
        "mediumCount",
        "lowCount",
        "uploadedAt",
    ):
        assert key in data
    assert data["blockedIPs"] == ["10.0.0.5"]
    assert data["incidentTypes"] == {"Ransomware": 1, "Port Scan": 6}


def test_report_csv_rows(make_alert, critical_signals):
    rows = dict((r[0], r[1]) for r in report_to_csv_rows(_result(make_alert, critical_signals).report))
    assert rows["File"] == "alerts.csv"
    assert rows["Total Alerts"] == 7
    assert rows["Blocked IPs"] == "10.0.0.5"
    assert rows["Critical"] == 1 and rows["Low"] == 6
    assert rows["Incident Types"] == "Count"


def test_alerts_csv_has_fixed_columns_and_placeholders():
    text = alerts_to_csv([{"AlertID": "A-1", "Score": 40, "Priority": "Low"}])
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == ["AlertID", "SourceIP", "IncidentType", "Score", "Priority", "Timestamp"]
    assert rows[1] == ["A-1", "N/A", "N/A", "40", "Low", "N/A"]


def test_write_report_files(tmp_path: Path, make_alert, critical_signals):
    paths = write_report_files(_result(make_alert, critical_signals), tmp_path / "out")
    assert set(paths) == {"json", "csv", "alerts"}
    assert json.loads(paths["json"].read_text(encoding="utf-8"))["afterCleaning"] == 7
    assert paths["alerts"].read_text(encoding="utf-8").count("\n") == 8


def test_jsonl_integer_beyond_float_range_scores_zero(tmp_path: Path):
    p = tmp_path / "e.jsonl"
    p.write_text('{"AlertID":"A-1","SourceIP":"10.0.0.1","SourceTrust":1' + "0" * 400 + "}\n", encoding="utf-8")
    raw = load_batch(p)
    assert isinstance(raw[0]["SourceTrust"], int)
    result = process_batch(raw, BlockedIPSet())
    assert result.report.total_alerts == 1
    assert result.report.fake_removed == 1
    assert result.alerts == []
