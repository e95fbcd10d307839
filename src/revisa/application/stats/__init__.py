# Application Stats Package
from .aggregator import aggregate_by_reference, aggregate_by_topic, compute_aggregated_stats
from .service import ProgressService
from .session_report import calculate_session_result, snapshot_items

__all__ = [
    "aggregate_by_reference",
    "aggregate_by_topic",
    "compute_aggregated_stats",
    "ProgressService",
    "calculate_session_result",
    "snapshot_items",
]
