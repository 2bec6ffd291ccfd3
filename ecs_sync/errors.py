from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .models import CommandResult


class SyncError(Exception):
    """Base class for template sync errors."""


class ValidationError(SyncError):
    """Raised when arguments or configuration fail validation."""


class DependencyError(SyncError):
    """Raised when required external commands are not installed."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"missing required commands: {', '.join(self.missing)}")


class CommandError(SyncError):
    """Raised when an external command exits non-zero."""

    def __init__(self, result: "CommandResult", message: str = ""):
        self.result = result
        detail = (result.stderr or result.stdout or "").strip()
        text = message or f"command failed ({result.returncode}): {result.display}"
        if detail:
            text = f"{text}: {detail[:2000]}"
        super().__init__(text)

    @property
    def returncode(self) -> int:
        return int(self.result.returncode)


class CommandTimeoutError(CommandError):
    """Raised when an external command exceeds its timeout."""


class GenerationError(SyncError):
    """Raised when the generator did not produce the expected artifact."""
