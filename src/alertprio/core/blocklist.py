from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import Any, Dict, Iterable, Iterator, List, Mapping

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 5


class BlockedIPSet:
    """Session-scoped set of auto-blocked source IPs.

    Grows monotonically: there is no removal path. Insertion order is kept so the
    cumulative block list reads in the order sources were first blocked. All access
    goes through a lock so overlapping batch runs cannot interleave updates.
    """

    def __init__(self, initial: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._ips: Dict[str, None] = {}
        for ip in initial:
            self._ips.setdefault(ip, None)

    def add(self, ip: str) -> bool:
        """Add one IP; returns True if it was not blocked before."""
        with self._lock:
            if ip in self._ips:
                return False
            self._ips[ip] = None
            return True

    def update(self, ips: Iterable[str]) -> List[str]:
        """Add several IPs atomically; returns the ones that were newly blocked."""
        added: List[str] = []
        with self._lock:
            for ip in ips:
                if ip not in self._ips:
                    self._ips[ip] = None
                    added.append(ip)
        return added

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._ips)

    def __contains__(self, ip: object) -> bool:
        with self._lock:
            return ip in self._ips

    def __len__(self) -> int:
        with self._lock:
            return len(self._ips)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"BlockedIPSet({self.snapshot()!r})"


def count_low_priority_sources(alerts: Iterable[Mapping[str, Any]]) -> Counter:
    """Occurrences of each non-blank SourceIP among Low priority alerts, in first-seen order."""
    counts: Counter = Counter()
    for a in alerts:
        ip = a.get("SourceIP")
        if ip is None or str(ip).strip() == "":
            continue
        if a.get("Priority") == "Low":
            counts[str(ip)] += 1
    return counts


def block_noisy_sources(
    alerts: Iterable[Mapping[str, Any]],
    blocked: BlockedIPSet,
    threshold: int = DEFAULT_THRESHOLD,
) -> List[str]:
    """Like detect_and_block_ips, but return only the IPs this call newly blocked."""
    counts = count_low_priority_sources(alerts)
    candidates = [ip for ip, n in counts.items() if n > threshold]
    added = blocked.update(candidates)
    if added:
        logger.warning("auto_blocked_ips", extra={"ips": added, "threshold": threshold})
    return added


def detect_and_block_ips(
    alerts: Iterable[Mapping[str, Any]],
    blocked: BlockedIPSet,
    threshold: int = DEFAULT_THRESHOLD,
) -> List[str]:
    """
    Block every source with strictly more than `threshold` Low priority alerts in the
    cleaned batch, and return the full cumulative block list.
    """
    block_noisy_sources(alerts, blocked, threshold)
    return blocked.snapshot()
