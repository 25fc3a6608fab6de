"""
Tag-driven lifecycle for detached volumes: mark, warn, delete, clear.
"""

from .state import LifecycleState, derive_state, read_marker
from .engine import (
    LifecycleEngine,
    MarkResult,
    WarnResult,
    DeleteResult,
    NotifyAndDeleteResult,
    ClearResult,
)

__all__ = [
    "LifecycleState",
    "derive_state",
    "read_marker",
    "LifecycleEngine",
    "MarkResult",
    "WarnResult",
    "DeleteResult",
    "NotifyAndDeleteResult",
    "ClearResult",
]
