from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence, Set, Tuple

from .scoring import DEFAULT_POLICY, to_number

IdentityKey = Tuple[str, str, str]


def _field(alert: Mapping[str, Any], name: str) -> str:
    value = alert.get(name)
    return "" if value is None else str(value)


def identity_key(alert: Mapping[str, Any]) -> IdentityKey:
    """(AlertID, SourceIP, Timestamp); a missing part is the empty string, never a wildcard."""
    return (_field(alert, "AlertID"), _field(alert, "SourceIP"), _field(alert, "Timestamp"))


def has_alert_id(alert: Mapping[str, Any]) -> bool:
    return _field(alert, "AlertID").strip() != ""


def remove_duplicates(alerts: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the first occurrence of each identity key, preserving input order."""
    seen: Set[IdentityKey] = set()
    out: List[Dict[str, Any]] = []
    for a in alerts:
        key = identity_key(a)
        if key in seen:
            continue
        seen.add(key)
        out.append(a)
    return out


def is_fake(alert: Mapping[str, Any], fake_tags: Sequence[str] = DEFAULT_POLICY.fake_tags) -> bool:
    if to_number(alert.get("Score")) <= 0:
        return True
    return alert.get("Priority") in fake_tags


def remove_fake_alerts(
    alerts: Iterable[Dict[str, Any]], fake_tags: Sequence[str] = DEFAULT_POLICY.fake_tags
) -> List[Dict[str, Any]]:
    """Drop alerts with a non-positive Score or an explicit fake Priority tag."""
    return [a for a in alerts if not is_fake(a, fake_tags)]
