"""Process an alert file and print the prioritized batch and report"""

from __future__ import annotations

import argparse
import json
import random
import sys
from pathlib import Path
from typing import List

from alertprio import config
from alertprio.core.scoring import DEFAULT_POLICY, PRIORITIES, PolicyError, load_scoring_policy
from alertprio.io.tabular import ParseError, load_batch
from alertprio.logs import setup_json_logging
from alertprio.notify import LogNotifier
from alertprio.session import AlertSession
from alertprio.ui.report_export import write_report_files


def build_session(scoring: Path | None) -> AlertSession:
    path = scoring or config.scoring_config_path()
    policy = load_scoring_policy(path) if path else DEFAULT_POLICY
    session = AlertSession(policy=policy)
    session.hub.subscribe(LogNotifier())
    return session


def print_text(session: AlertSession, priority: str) -> None:
    report = session.report
    if report is None:
        return
    print("\n=== Threat Intelligence Report ===")
    print(f"File: {report.file_name or '-'}")
    print(f"Uploaded At: {report.uploaded_at}")
    print(f"Total Alerts: {report.total_alerts}")
    print(f"After Cleaning: {report.after_cleaning}")
    print(f"Duplicates Removed: {report.duplicates_removed}")
    print(f"  missing AlertID: {report.missing_id_removed}")
    print(f"  exact duplicates: {report.exact_duplicates_removed}")
    print(f"  fake alerts: {report.fake_removed}")
    print(f"Blocked IPs: {', '.join(report.blocked_ips) or 'None'}")
    print(
        f"Critical: {report.critical_count}  High: {report.high_count}  "
        f"Medium: {report.medium_count}  Low: {report.low_count}"
    )
    alerts = session.alerts(priority)
    print(f"\n--- Alerts ({priority}, {len(alerts)}) ---")
    for a in alerts:
        print(
            f"{a.get('Priority', 'N/A'):<8} {a.get('Score', 0):>3}  {a.get('AlertID') or 'N/A':<12} "
            f"{a.get('SourceIP') or 'N/A':<15} {a.get('IncidentType') or 'Unknown':<20} {a.get('Timestamp') or 'N/A'}"
        )


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Score, clean and prioritize a batch of security alerts")
    p.add_argument("--input", type=Path, required=True, help="CSV or JSONL alert file")
    p.add_argument("--scoring", type=Path, default=None, help="Scoring policy YAML (default: configs/scoring.yaml)")
    p.add_argument("--priority", choices=["All", *PRIORITIES], default="All", help="Only list alerts of this priority")
    p.add_argument("--refresh", type=int, default=0, help="Run N simulated refresh cycles after the upload")
    p.add_argument("--seed", type=int, default=None, help="Seed for refresh simulation")
    p.add_argument("--out-dir", type=Path, default=None, help="Write threat_report.json/.csv and alerts.csv here")
    p.add_argument("--format", choices=["json", "text"], default="text", help="Output format")
    args = p.parse_args(argv)

    setup_json_logging(config.LOG_LEVEL)

    try:
        session = build_session(args.scoring)
        raw = load_batch(args.input)
    except (ParseError, PolicyError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    result = session.upload(raw, file_name=args.input.name)
    rng = random.Random(args.seed)
    for _ in range(max(0, args.refresh)):
        result = session.refresh(rng=rng) or result

    if args.out_dir:
        paths = write_report_files(result, args.out_dir)
        for kind, path in paths.items():
            print(f"Wrote {kind}: {path}", file=sys.stderr)

    if args.format == "json":
        payload = {
            "report": result.report.to_dict(),
            "alerts": session.alerts(args.priority),
            "newAlerts": result.new_alerts,
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print_text(session, args.priority)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
