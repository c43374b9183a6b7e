from __future__ import annotations

from enum import StrEnum


class RuleKind(StrEnum):
    YEARLY = "y"
    DAILY = "d"
    WEEKLY = "w"
    MONTHLY = "m"
