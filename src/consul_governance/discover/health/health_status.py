from __future__ import annotations

from enum import StrEnum


class CheckStatus(StrEnum):
    """Status values reported by registry-managed health checks."""

    PASSING = "passing"
    WARNING = "warning"
    CRITICAL = "critical"
    MAINTENANCE = "maintenance"
    UNKNOWN = "unknown"
