"""Allowed-transition policies for the issue status state machine.

The engine takes a policy instance rather than hard-coding an ordering. Two
variants exist, selected by ``kind``:

* ``permissive`` accepts any target from any state, including repeats.
* ``forward_only`` rejects targets that precede the current status.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from civic_report.models.enums import IssueStatus


@dataclass(frozen=True)
class PermissiveTransitions:
    kind: Literal["permissive"] = "permissive"

    def allows(self, current: IssueStatus, target: IssueStatus) -> bool:
        return True


@dataclass(frozen=True)
class ForwardOnlyTransitions:
    kind: Literal["forward_only"] = "forward_only"

    def allows(self, current: IssueStatus, target: IssueStatus) -> bool:
        # Repeating the current status is a no-op transition, not a step back.
        return target.rank >= current.rank


TransitionPolicy = PermissiveTransitions | ForwardOnlyTransitions


def transition_policy_from_name(name: str) -> TransitionPolicy:
    """Build the policy named by ``STATUS_TRANSITION_POLICY``."""
    if name == "permissive":
        return PermissiveTransitions()
    if name == "forward_only":
        return ForwardOnlyTransitions()
    raise ValueError(f"Unknown status transition policy: {name!r}")
