from __future__ import annotations

from alertprio.metrics.pipeline_metrics import REGISTRY, render_metrics
from alertprio.session import AlertSession


def _value(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_session_cycle_updates_metrics(make_alert):
    before_batches = _value("alertprio_batches_total", {"trigger": "upload"})
    before_low = _value("alertprio_alerts_processed_total", {"priority": "Low"})
    before_missing = _value("alertprio_alerts_removed_total", {"reason": "missing_id"})
    before_latency = _value("alertprio_batch_latency_seconds_count")

    session = AlertSession()
    session.upload([make_alert(SourceIP="10.0.0.5") for _ in range(6)] + [{"SourceTrust": 1}])

    assert _value("alertprio_batches_total", {"trigger": "upload"}) == before_batches + 1
    assert _value("alertprio_alerts_processed_total", {"priority": "Low"}) == before_low + 6
    assert _value("alertprio_alerts_removed_total", {"reason": "missing_id"}) == before_missing + 1
    assert _value("alertprio_batch_latency_seconds_count") == before_latency + 1
    assert _value("alertprio_blocked_ips", {"session": session.name}) == 1.0


def test_blocked_ip_additions_count_only_new_blocks(make_alert):
    session = AlertSession(name="additions")
    labels = {"session": "additions"}
    noisy = [make_alert(SourceIP="10.0.0.5") for _ in range(6)]

    result = session.upload(noisy)
    assert result.newly_blocked == ["10.0.0.5"]
    assert _value("alertprio_blocked_ip_additions_total", labels) == 1.0

    # already blocked: set size unchanged, no further additions
    result = session.upload(noisy + [make_alert(SourceIP="10.0.0.6") for _ in range(6)])
    assert result.newly_blocked == ["10.0.0.6"]
    assert _value("alertprio_blocked_ip_additions_total", labels) == 2.0

    result = session.upload(noisy)
    assert result.newly_blocked == []
    assert _value("alertprio_blocked_ip_additions_total", labels) == 2.0
    assert _value("alertprio_blocked_ips", labels) == 2.0


def test_blocked_ips_gauge_is_per_session(make_alert):
    busy = AlertSession(name="busy")
    quiet = AlertSession(name="quiet")
    busy.upload([make_alert(SourceIP=f"10.2.0.{n}") for n in range(3) for _ in range(6)])
    quiet.upload([make_alert()])
    assert _value("alertprio_blocked_ips", {"session": "busy"}) == 3.0
    assert _value("alertprio_blocked_ips", {"session": "quiet"}) == 0.0


def test_sessions_get_distinct_default_names():
    assert AlertSession().name != AlertSession().name


def test_metrics_exposition():
    AlertSession(name="exposition").upload([])
    body = render_metrics()
    assert b"alertprio_batches_total" in body
    assert b"alertprio_blocked_ips" in body
    assert b"alertprio_blocked_ip_additions_total" in body
