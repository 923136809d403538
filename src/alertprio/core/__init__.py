"""Core alert pipeline: scoring, cleaning, IP auto-blocking, batch processing, refresh."""

from .scoring import calculate_score, get_priority, score_alert, ScoringPolicy, DEFAULT_POLICY
from .cleaning import identity_key, remove_duplicates, remove_fake_alerts
from .blocklist import BlockedIPSet, block_noisy_sources, detect_and_block_ips
from .pipeline import BatchResult, Report, filter_by_priority, process_batch, sort_alerts
from .refresh import simulate_refresh

__all__ = [
    "calculate_score",
    "get_priority",
    "score_alert",
    "ScoringPolicy",
    "DEFAULT_POLICY",
    "identity_key",
    "remove_duplicates",
    "remove_fake_alerts",
    "BlockedIPSet",
    "block_noisy_sources",
    "detect_and_block_ips",
    "BatchResult",
    "Report",
    "filter_by_priority",
    "process_batch",
    "sort_alerts",
    "simulate_refresh",
]
