"""
New-alert notification fan-out, kept apart from batch processing
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Sequence

from alertprio import config
from alertprio.metrics.pipeline_metrics import notify_failures_total

logger = logging.getLogger(__name__)

Subscriber = Callable[[Sequence[Dict[str, Any]], Any], None]


class NotificationHub:
    """Delivers each cycle's new alerts and report to registered subscribers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Subscriber:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, alerts: Sequence[Dict[str, Any]], report: Any) -> int:
        """Call every subscriber; a failing subscriber is logged and skipped. Returns failures."""
        with self._lock:
            subscribers = list(self._subscribers)
        failures = 0
        for callback in subscribers:
            try:
                callback(alerts, report)
            except Exception:
                failures += 1
                notify_failures_total.inc()
                logger.exception("notify_subscriber_failed", extra={"subscriber": repr(callback)})
        return failures


class LogNotifier:
    """Subscriber that logs one record per new alert in the watched priorities."""

    def __init__(self, priorities: Iterable[str] | None = None, log: logging.Logger | None = None) -> None:
        self.priorities = set(priorities) if priorities is not None else set(config.NOTIFY_PRIORITIES)
        self.log = log or logger

    def __call__(self, alerts: Sequence[Dict[str, Any]], report: Any) -> None:
        for alert in alerts:
            if alert.get("Priority") not in self.priorities:
                continue
            self.log.warning(
                f"{alert.get('Priority')} alert {alert.get('AlertID')}",
                extra={
                    "alert_id": alert.get("AlertID"),
                    "incident_type": alert.get("IncidentType") or "Unknown",
                    "source_ip": alert.get("SourceIP"),
                    "score": alert.get("Score"),
                },
            )
