from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

PRIORITIES: Tuple[str, ...] = ("Critical", "High", "Medium", "Low")
PRIORITY_RANK: Dict[str, int] = {"Critical": 4, "High": 3, "Medium": 2, "Low": 1}

SCORING_FIELDS: Tuple[str, ...] = (
    "Recency",
    "SourceTrust",
    "AssetCriticality",
    "AssetMatch",
    "ExploitPressure",
    "TTPSeverity",
    "SightingsScore",
    "BenignPenalty",
)


class PolicyError(ValueError):
    """Raised when a scoring policy file cannot be loaded or is inconsistent."""


class ScoringPolicy(BaseModel):
    """
    Weights, signal scales and priority cut points, kept as one unit.

    score = 100 * sum(weight_f * value_f / scale_f), rounded half-up and clamped to [0, 100].
    thresholds maps each priority band to its minimum score; bands are checked highest first.
    """

    model_config = ConfigDict(frozen=True)

    version: str = "canonical-1"
    weights: Dict[str, float] = Field(
        default_factory=lambda: {
            "Recency": 0.20,
            "SourceTrust": 0.20,
            "AssetCriticality": 0.20,
            "AssetMatch": 0.15,
            "ExploitPressure": 0.15,
            "TTPSeverity": 0.10,
            "SightingsScore": 0.10,
            "BenignPenalty": -0.10,
        }
    )
    scales: Dict[str, float] = Field(default_factory=lambda: {"AssetCriticality": 5.0, "TTPSeverity": 5.0})
    thresholds: Dict[str, int] = Field(
        default_factory=lambda: {"Critical": 85, "High": 70, "Medium": 50, "Low": 0}
    )
    fake_tags: Tuple[str, ...] = ("LowFake",)

    @field_validator("weights")
    @classmethod
    def _known_signals(cls, v: Dict[str, float]) -> Dict[str, float]:
        unknown = sorted(set(v) - set(SCORING_FIELDS))
        if unknown:
            raise ValueError(f"unknown scoring signals: {unknown}")
        return v

    @field_validator("scales")
    @classmethod
    def _positive_scales(cls, v: Dict[str, float]) -> Dict[str, float]:
        for name, scale in v.items():
            if scale <= 0:
                raise ValueError(f"scale for {name} must be positive")
        return v

    @model_validator(mode="after")
    def _ordered_bands(self) -> "ScoringPolicy":
        if set(self.thresholds) != set(PRIORITIES):
            raise ValueError(f"thresholds must define exactly {list(PRIORITIES)}")
        cuts = [self.thresholds[p] for p in PRIORITIES]
        if any(hi <= lo for hi, lo in zip(cuts, cuts[1:])):
            raise ValueError("thresholds must be strictly descending from Critical to Low")
        return self

    def bands(self) -> List[Tuple[str, int]]:
        return [(p, self.thresholds[p]) for p in PRIORITIES]


DEFAULT_POLICY = ScoringPolicy()


def load_scoring_policy(path: Path | str) -> ScoringPolicy:
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise PolicyError(f"cannot read scoring policy {p}: {e}") from e
    if not isinstance(cfg, dict):
        raise PolicyError(f"scoring policy {p} must be a mapping")
    try:
        return ScoringPolicy(**cfg)
    except ValidationError as e:
        raise PolicyError(f"invalid scoring policy {p}: {e}") from e


def to_number(value: Any) -> float:
    """Parse a field value as a finite float; anything else counts as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    # an int beyond float range raises OverflowError
    try:
        x = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if math.isnan(x) or math.isinf(x):
        return 0.0
    return x


def calculate_score(alert: Mapping[str, Any], policy: ScoringPolicy | None = None) -> int:
    policy = policy or DEFAULT_POLICY
    raw = 0.0
    for name, weight in policy.weights.items():
        raw += weight * to_number(alert.get(name)) / policy.scales.get(name, 1.0)
    scaled = 100.0 * raw
    # huge opposing inputs can overflow to inf - inf
    if math.isnan(scaled) or scaled <= 0:
        return 0
    if scaled >= 100:
        return 100
    # half-up rounding; Python's round() is banker's rounding
    return min(100, math.floor(scaled + 0.5))


def get_priority(score: int, policy: ScoringPolicy | None = None) -> str:
    policy = policy or DEFAULT_POLICY
    for label, minimum in policy.bands():
        if score >= minimum:
            return label
    return PRIORITIES[-1]


def score_alert(alert: Mapping[str, Any], policy: ScoringPolicy | None = None) -> Dict[str, Any]:
    """
    Return a copy of the raw alert with Score and Priority set.

    An explicit fake tag in the raw Priority column is kept as-is so the fake filter can
    drop the record; every other record gets the band matching its score.
    """
    policy = policy or DEFAULT_POLICY
    score = calculate_score(alert, policy)
    tag = alert.get("Priority")
    if isinstance(tag, str) and tag in policy.fake_tags:
        priority = tag
    else:
        priority = get_priority(score, policy)
    out = dict(alert)
    out["Score"] = score
    out["Priority"] = priority
    return out
