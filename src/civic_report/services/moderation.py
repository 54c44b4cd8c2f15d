"""Moderation policy for community flags."""

from __future__ import annotations

from dataclasses import dataclass

AUTO_HIDE_REASON = "auto-hidden: flag threshold exceeded"
REVIEW_HIDE_REASON = "hidden due to flag review"


@dataclass(frozen=True)
class ModerationPolicy:
    """Pure threshold rule deciding whether an issue should be auto-hidden.

    The rule is re-evaluated on every new flag. It only ever hides; restoring
    visibility is an explicit admin action.
    """

    flag_threshold: int = 5

    def __post_init__(self) -> None:
        if self.flag_threshold < 1:
            raise ValueError("flag_threshold must be at least 1")

    def evaluate(self, flag_count: int, is_hidden: bool = False) -> bool:
        """Return True when an issue with ``flag_count`` flags should be hidden now."""
        return not is_hidden and flag_count >= self.flag_threshold
