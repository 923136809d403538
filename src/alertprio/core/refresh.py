from __future__ import annotations

import random
from typing import Any, Dict, Iterable, List, Mapping

from .scoring import DEFAULT_POLICY, SCORING_FIELDS, ScoringPolicy


def escalate(alert: Mapping[str, Any], policy: ScoringPolicy | None = None) -> Dict[str, Any]:
    """Copy of the alert with asset criticality at the top of its scale and full exploit pressure."""
    policy = policy or DEFAULT_POLICY
    out = dict(alert)
    top = policy.scales.get("AssetCriticality", 1.0)
    out["AssetCriticality"] = int(top) if float(top).is_integer() else top
    out["ExploitPressure"] = 1
    return out


def zero_out(alert: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of the alert with every scoring signal set to 0."""
    out = dict(alert)
    for name in SCORING_FIELDS:
        out[name] = 0
    return out


def simulate_refresh(
    raw_alerts: Iterable[Mapping[str, Any]],
    rng: random.Random | None = None,
    escalate_rate: float = 0.1,
    zero_rate: float = 0.05,
    policy: ScoringPolicy | None = None,
) -> List[Dict[str, Any]]:
    """
    Perturb a copy of the last raw batch to emulate live drift.

    Each record draws once from `rng`: below `escalate_rate` it is escalated, below
    `escalate_rate + zero_rate` its signals are zeroed, otherwise it is copied unchanged.
    Pass a seeded `random.Random` for a reproducible batch.
    """
    if escalate_rate < 0 or zero_rate < 0 or escalate_rate + zero_rate > 1:
        raise ValueError("escalate_rate and zero_rate must be non-negative and sum to at most 1")
    rng = rng or random.Random()
    out: List[Dict[str, Any]] = []
    for alert in raw_alerts:
        draw = rng.random()
        if draw < escalate_rate:
            out.append(escalate(alert, policy))
        elif draw < escalate_rate + zero_rate:
            out.append(zero_out(alert))
        else:
            out.append(dict(alert))
    return out
