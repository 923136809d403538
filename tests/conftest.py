import os
import sys
from typing import Any, Dict

import pytest

# Make the `src` layout importable without installing the package
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)


# Signal values for a maximally adverse alert with zero recency; scores exactly 90.
CRITICAL_SIGNALS: Dict[str, Any] = {
    "Recency": 0,
    "SourceTrust": 1,
    "AssetCriticality": 5,
    "AssetMatch": 1,
    "ExploitPressure": 1,
    "TTPSeverity": 5,
    "SightingsScore": 1,
    "BenignPenalty": 0,
}

# SourceTrust 0.5 alone scores 10: positive but Low.
LOW_SIGNALS: Dict[str, Any] = {"SourceTrust": 0.5}


@pytest.fixture
def make_alert():
    counter = {"n": 0}

    def _make(signals: Dict[str, Any] | None = None, **fields: Any) -> Dict[str, Any]:
        counter["n"] += 1
        n = counter["n"]
        alert: Dict[str, Any] = {
            "AlertID": f"A-{n}",
            "SourceIP": f"192.0.2.{n % 250}",
            "Timestamp": f"2025-03-01T08:{n % 60:02d}:00Z",
            "IncidentType": "Port Scan",
        }
        alert.update(signals if signals is not None else LOW_SIGNALS)
        alert.update(fields)
        return alert

    return _make


@pytest.fixture
def sample_csv():
    return os.path.join(ROOT, "data", "sample_alerts.csv")


@pytest.fixture
def critical_signals() -> Dict[str, Any]:
    return dict(CRITICAL_SIGNALS)


@pytest.fixture
def low_signals() -> Dict[str, Any]:
    return dict(LOW_SIGNALS)
