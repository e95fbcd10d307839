# Domain Stats Package
from .models import (
    ItemMetrics,
    ItemSetStats,
    ItemSnapshot,
    KindCounts,
    PendingLists,
    ReferenceProgress,
    ReferenceStatus,
    SessionResult,
    StatusCounts,
    TopicSummary,
)

__all__ = [
    "KindCounts",
    "StatusCounts",
    "PendingLists",
    "ReferenceProgress",
    "ReferenceStatus",
    "ItemSetStats",
    "TopicSummary",
    "ItemMetrics",
    "ItemSnapshot",
    "SessionResult",
]
