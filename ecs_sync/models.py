from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

# Terminal states of a sync run. All of them exit 0.
SyncOutcome = Literal["nothing_to_do", "generated_only", "no_changes", "published"]
SYNC_OUTCOME_VALUES: Tuple[str, ...] = ("nothing_to_do", "generated_only", "no_changes", "published")

# Downstream repository states, in the order the publisher walks them.
PublishState = Literal[
    "not_cloned",
    "cloned",
    "branch_selected",
    "artifacts_copied",
    "committed_and_pushed",
    "no_changes",
]

UpsertAction = Literal["created", "updated"]


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one external process invocation.

    ``argv``, ``stdout`` and ``stderr`` are already redacted by the runner.
    """

    argv: Tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def display(self) -> str:
        return " ".join(shlex.quote(a) for a in self.argv)


@dataclass(frozen=True)
class UpsertResult:
    """Tagged result of a create-or-update decision."""

    action: UpsertAction
    ref: str
    number: int = 0


@dataclass(frozen=True)
class PullRequest:
    number: int
    updated_at: str = ""


@dataclass
class PublishReport:
    state: PublishState = "not_cloned"
    branch: Optional[UpsertResult] = None
    copied: List[str] = field(default_factory=list)
    commit_message: str = ""


@dataclass
class SyncResult:
    outcome: SyncOutcome
    detected_modules: List[str] = field(default_factory=list)
    relevant_modules: List[str] = field(default_factory=list)
    skipped_modules: List[str] = field(default_factory=list)
    publish: Optional[PublishReport] = None
    pull_request: Optional[UpsertResult] = None
