"""
Runtime settings for the alert prioritizer, read from the environment
"""
import os
from pathlib import Path

CONFIG_DIR = Path(os.getenv("ALERTPRIO_CONFIG_DIR") or (Path(__file__).resolve().parents[2] / "configs"))
SCORING_CONFIG = os.getenv("ALERTPRIO_SCORING_CONFIG", "")

# IP auto-blocking: strictly more Low alerts than this from one source
BLOCK_THRESHOLD = int(os.getenv("ALERTPRIO_BLOCK_THRESHOLD", "5"))

# Refresh simulation
REFRESH_INTERVAL_SEC = int(os.getenv("ALERTPRIO_REFRESH_INTERVAL_SEC", "30"))
ESCALATE_RATE = float(os.getenv("ALERTPRIO_ESCALATE_RATE", "0.1"))
ZERO_RATE = float(os.getenv("ALERTPRIO_ZERO_RATE", "0.05"))

LOG_LEVEL = os.getenv("ALERTPRIO_LOG_LEVEL", "INFO").upper()
NOTIFY_PRIORITIES = {
    p.strip() for p in os.getenv("ALERTPRIO_NOTIFY_PRIORITIES", "Critical").split(",") if p.strip()
}


def scoring_config_path() -> Path | None:
    """Explicit scoring YAML if configured, else configs/scoring.yaml when present."""
    if SCORING_CONFIG:
        return Path(SCORING_CONFIG)
    default = CONFIG_DIR / "scoring.yaml"
    return default if default.exists() else None
