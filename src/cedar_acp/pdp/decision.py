"""Decision enum for authorization outcomes."""

from __future__ import annotations

__all__ = ["Decision"]

from enum import Enum


class Decision(str, Enum):
    """Authorization decision.

    Inherits from str for easy serialization and comparison.

    Attributes:
        ALLOW: At least one permit was satisfied and no forbid was.
        DENY: A forbid was satisfied, or no permit was (default deny).
    """

    ALLOW = "allow"
    DENY = "deny"
