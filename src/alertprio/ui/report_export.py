from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from alertprio.core.pipeline import BatchResult, Report

ALERT_COLUMNS = ["AlertID", "SourceIP", "IncidentType", "Score", "Priority", "Timestamp"]


def report_to_json(report: Report) -> str:
    return json.dumps(report.to_dict(), ensure_ascii=False, indent=2)


def report_to_csv_rows(report: Report) -> List[List[Any]]:
    """Two-column admin report rows, with the incident type breakdown appended."""
    rows: List[List[Any]] = [
        ["File", report.file_name],
        ["Uploaded At", report.uploaded_at],
        ["Total Alerts", report.total_alerts],
        ["After Cleaning", report.after_cleaning],
        ["Duplicates Removed", report.duplicates_removed],
        ["Fake Alerts Removed", report.fake_removed],
        ["Blocked IPs", "; ".join(report.blocked_ips) or "None"],
        ["Critical", report.critical_count],
        ["High", report.high_count],
        ["Medium", report.medium_count],
        ["Low", report.low_count],
    ]
    if report.incident_types:
        rows.append(["Incident Types", "Count"])
        for kind, count in report.incident_types.items():
            rows.append([kind, count])
    return rows


def _write_csv(rows: Sequence[Sequence[Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def report_to_csv(report: Report) -> str:
    return _write_csv(report_to_csv_rows(report))


def alerts_to_csv(alerts: Sequence[Dict[str, Any]], columns: Sequence[str] = ALERT_COLUMNS) -> str:
    """Alert table with fixed leading columns; absent values render as N/A."""
    rows: List[List[Any]] = [list(columns)]
    for a in alerts:
        rows.append([a.get(c) if a.get(c) not in (None, "") else "N/A" for c in columns])
    return _write_csv(rows)


def write_report_files(result: BatchResult, out_dir: Path) -> Dict[str, Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    json_path = out_dir / "threat_report.json"
    csv_path = out_dir / "threat_report.csv"
    alerts_path = out_dir / "alerts.csv"
    json_path.write_text(report_to_json(result.report), encoding="utf-8")
    csv_path.write_text(report_to_csv(result.report), encoding="utf-8")
    alerts_path.write_text(alerts_to_csv(result.alerts), encoding="utf-8")
    return {"json": json_path, "csv": csv_path, "alerts": alerts_path}
