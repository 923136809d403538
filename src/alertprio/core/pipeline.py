from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .blocklist import DEFAULT_THRESHOLD, BlockedIPSet, block_noisy_sources
from .cleaning import IdentityKey, has_alert_id, identity_key, remove_duplicates, remove_fake_alerts
from .scoring import DEFAULT_POLICY, PRIORITIES, PRIORITY_RANK, ScoringPolicy, score_alert, to_number

logger = logging.getLogger(__name__)


class Report(BaseModel):
    """Summary of one processing cycle. Immutable; the next cycle supersedes it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_name: str = Field("", alias="fileName")
    total_alerts: int = Field(0, alias="totalAlerts")
    after_cleaning: int = Field(0, alias="afterCleaning")
    # total_alerts - after_cleaning; the breakdown is in the three counts below
    duplicates_removed: int = Field(0, alias="duplicatesRemoved")
    missing_id_removed: int = Field(0, alias="missingIdRemoved")
    exact_duplicates_removed: int = Field(0, alias="exactDuplicatesRemoved")
    fake_removed: int = Field(0, alias="fakeRemoved")
    blocked_ips: Tuple[str, ...] = Field((), alias="blockedIPs")
    critical_count: int = Field(0, alias="criticalCount")
    high_count: int = Field(0, alias="highCount")
    medium_count: int = Field(0, alias="mediumCount")
    low_count: int = Field(0, alias="lowCount")
    incident_types: Dict[str, int] = Field(default_factory=dict, alias="incidentTypes")
    uploaded_at: str = Field("", alias="uploadedAt")
    policy_version: str = Field("", alias="policyVersion")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


@dataclass
class BatchResult:
    alerts: List[Dict[str, Any]]
    report: Report
    blocked_ips: List[str]
    new_alerts: List[Dict[str, Any]] = field(default_factory=list)
    # IPs this batch added to the block set, in block order
    newly_blocked: List[str] = field(default_factory=list)


def sort_alerts(alerts: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Priority rank descending, then Score descending; ties keep their input order."""
    return sorted(
        alerts,
        key=lambda a: (-PRIORITY_RANK.get(a.get("Priority"), 0), -to_number(a.get("Score"))),
    )


def filter_by_priority(alerts: Iterable[Dict[str, Any]], priority: str | None = "All") -> List[Dict[str, Any]]:
    if priority is None or priority == "All":
        return list(alerts)
    return [a for a in alerts if a.get("Priority") == priority]


def detect_new_alerts(
    current: Sequence[Dict[str, Any]], previous: Sequence[Mapping[str, Any]] | None
) -> List[Dict[str, Any]]:
    """Alerts whose identity key was absent from the previous cleaned batch, in current order."""
    if previous is None:
        return list(current)
    seen: Set[IdentityKey] = {identity_key(a) for a in previous}
    return [a for a in current if identity_key(a) not in seen]


def count_priorities(alerts: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    counts = Counter(a.get("Priority") for a in alerts)
    return {p: counts.get(p, 0) for p in PRIORITIES}


def count_incident_types(alerts: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for a in alerts:
        kind = a.get("IncidentType")
        label = str(kind) if kind not in (None, "") else "Unknown"
        counts[label] = counts.get(label, 0) + 1
    return counts


def process_batch(
    raw_alerts: Iterable[Mapping[str, Any]],
    blocked: BlockedIPSet,
    previous: Sequence[Mapping[str, Any]] | None = None,
    policy: ScoringPolicy | None = None,
    file_name: str = "",
    now: datetime | None = None,
    block_threshold: int = DEFAULT_THRESHOLD,
) -> BatchResult:
    """
    Score, clean, auto-block, sort and summarize one raw batch.

    `blocked` is updated in place and only ever grows. `previous` is the prior cycle's
    cleaned batch; when given, only alerts with unseen identity keys are reported as new.
    """
    policy = policy or DEFAULT_POLICY
    raw = list(raw_alerts)
    total = len(raw)

    identified = [a for a in raw if has_alert_id(a)]
    missing_id = total - len(identified)
    if missing_id:
        logger.debug("excluded_missing_alert_id", extra={"count": missing_id})

    scored = [score_alert(a, policy) for a in identified]
    deduped = remove_duplicates(scored)
    cleaned = remove_fake_alerts(deduped, policy.fake_tags)

    newly_blocked = block_noisy_sources(cleaned, blocked, threshold=block_threshold)
    blocked_ips = blocked.snapshot()

    ordered = sort_alerts(cleaned)
    new_alerts = detect_new_alerts(ordered, previous)

    by_priority = count_priorities(ordered)
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    report = Report(
        file_name=file_name,
        total_alerts=total,
        after_cleaning=len(ordered),
        duplicates_removed=total - len(ordered),
        missing_id_removed=missing_id,
        exact_duplicates_removed=len(scored) - len(deduped),
        fake_removed=len(deduped) - len(cleaned),
        blocked_ips=tuple(blocked_ips),
        critical_count=by_priority["Critical"],
        high_count=by_priority["High"],
        medium_count=by_priority["Medium"],
        low_count=by_priority["Low"],
        incident_types=count_incident_types(ordered),
        uploaded_at=stamp,
        policy_version=policy.version,
    )

    logger.info(
        "batch_processed",
        extra={
            "file": file_name,
            "total": total,
            "after_cleaning": report.after_cleaning,
            "missing_id": missing_id,
            "duplicates": report.exact_duplicates_removed,
            "fake": report.fake_removed,
            "new": len(new_alerts),
            "blocked": len(blocked_ips),
        },
    )
    return BatchResult(
        alerts=ordered,
        report=report,
        blocked_ips=blocked_ips,
        new_alerts=new_alerts,
        newly_blocked=newly_blocked,
    )
