"""
Alert Session: owns the blocked IP set and the last batch across uploads and refreshes
"""
from __future__ import annotations

import logging
import random
import itertools
import threading
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from alertprio import config
from alertprio.core.blocklist import BlockedIPSet
from alertprio.core.pipeline import BatchResult, Report, filter_by_priority, process_batch
from alertprio.core.refresh import simulate_refresh
from alertprio.core.scoring import DEFAULT_POLICY, ScoringPolicy
from alertprio.metrics.pipeline_metrics import batch_latency, observe_duration, record_batch
from alertprio.notify import NotificationHub

logger = logging.getLogger(__name__)

_session_ids = itertools.count(1)


class AlertSession:
    """
    One analyst session.

    The blocked IP set is created with the session and carried through every cycle; it is
    never reset. Cycles run one at a time under a lock, so a manual refresh and a periodic
    refresh cannot interleave. Each finished cycle replaces the stored batch and report.
    """

    def __init__(
        self,
        policy: ScoringPolicy | None = None,
        blocked: BlockedIPSet | None = None,
        hub: NotificationHub | None = None,
        block_threshold: int | None = None,
        name: str | None = None,
    ) -> None:
        # labels this session's series in the metrics registry
        self.name = name or f"session-{next(_session_ids)}"
        self.policy = policy or DEFAULT_POLICY
        self.blocked = blocked if blocked is not None else BlockedIPSet()
        self.hub = hub or NotificationHub()
        self.block_threshold = config.BLOCK_THRESHOLD if block_threshold is None else block_threshold
        self._lock = threading.Lock()
        self._last_raw: List[Dict[str, Any]] | None = None
        self._last: BatchResult | None = None
        self._file_name = ""

    @property
    def last_result(self) -> Optional[BatchResult]:
        return self._last

    @property
    def report(self) -> Optional[Report]:
        return self._last.report if self._last else None

    @property
    def blocked_ips(self) -> List[str]:
        return self.blocked.snapshot()

    def alerts(self, priority: str | None = "All") -> List[Dict[str, Any]]:
        if self._last is None:
            return []
        return filter_by_priority(self._last.alerts, priority)

    def upload(
        self, raw_alerts: Iterable[Mapping[str, Any]], file_name: str = "", now: datetime | None = None
    ) -> BatchResult:
        raw = [dict(a) for a in raw_alerts]
        with self._lock:
            self._file_name = file_name
            self._last_raw = raw
            return self._run(raw, "upload", now)

    def refresh(
        self,
        rng: random.Random | None = None,
        escalate_rate: float | None = None,
        zero_rate: float | None = None,
        now: datetime | None = None,
    ) -> Optional[BatchResult]:
        """Re-process a perturbed copy of the last upload; None if nothing was uploaded yet."""
        with self._lock:
            if self._last_raw is None:
                logger.info("refresh_skipped_no_upload")
                return None
            raw = simulate_refresh(
                self._last_raw,
                rng=rng,
                escalate_rate=config.ESCALATE_RATE if escalate_rate is None else escalate_rate,
                zero_rate=config.ZERO_RATE if zero_rate is None else zero_rate,
                policy=self.policy,
            )
            return self._run(raw, "refresh", now)

    @observe_duration(batch_latency)
    def _run(self, raw: List[Dict[str, Any]], trigger: str, now: datetime | None) -> BatchResult:
        previous = self._last.alerts if self._last else None
        result = process_batch(
            raw,
            self.blocked,
            previous=previous,
            policy=self.policy,
            file_name=self._file_name,
            now=now,
            block_threshold=self.block_threshold,
        )
        self._last = result
        record_batch(result, trigger, session=self.name)
        if result.new_alerts:
            self.hub.publish(result.new_alerts, result.report)
        return result
