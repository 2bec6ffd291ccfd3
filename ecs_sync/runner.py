"""External process execution.

Every git, gh and generator call goes through a ``CommandRunner``. The default
implementation wraps :func:`subprocess.run` with captured output, an explicit
timeout and secret redaction, and returns a :class:`CommandResult` instead of
relying on the caller to inspect a ``CompletedProcess``.

Tests inject fakes that implement the same protocol.
"""

from __future__ import annotations

import os
import subprocess
import time
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Protocol, Sequence

from .errors import CommandError, CommandTimeoutError
from .models import CommandResult

REDACTED = "***"
TIMEOUT_RETURNCODE = 124


class CommandRunner(Protocol):
    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
        check: bool = True,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        raise NotImplementedError


def redact(text: str, secrets: Iterable[str]) -> str:
    out = text or ""
    for s in secrets:
        if s:
            out = out.replace(s, REDACTED)
    return out


class SubprocessRunner:
    """CommandRunner backed by :mod:`subprocess`."""

    def __init__(self, *, default_timeout: Optional[float] = None, secrets: Optional[Iterable[str]] = None):
        self.default_timeout = default_timeout
        self._secrets: List[str] = [s for s in (secrets or []) if s]

    def add_secret(self, value: str) -> None:
        if value and value not in self._secrets:
            self._secrets.append(value)

    def _redact(self, text: str) -> str:
        return redact(text, self._secrets)

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
        check: bool = True,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        limit = timeout if timeout is not None else self.default_timeout
        shown = tuple(self._redact(str(a)) for a in argv)
        started = time.monotonic()
        try:
            cp = subprocess.run(
                [str(a) for a in argv],
                cwd=str(cwd) if cwd is not None else None,
                input=input_text,
                check=False,
                text=True,
                capture_output=True,
                timeout=limit,
                env=_merged_env(env),
            )
        except subprocess.TimeoutExpired as e:
            result = CommandResult(
                argv=shown,
                returncode=TIMEOUT_RETURNCODE,
                stdout=self._redact(_as_text(e.stdout)),
                stderr=self._redact(_as_text(e.stderr)),
                duration_s=time.monotonic() - started,
            )
            raise CommandTimeoutError(result, f"command timed out after {limit}s: {result.display}")

        result = CommandResult(
            argv=shown,
            returncode=cp.returncode,
            stdout=self._redact(cp.stdout or ""),
            stderr=self._redact(cp.stderr or ""),
            duration_s=time.monotonic() - started,
        )
        if check and not result.ok:
            raise CommandError(result)
        return result


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _merged_env(extra: Optional[Mapping[str, str]]) -> Optional[dict]:
    """Overlay ``extra`` on the inherited environment; None keeps it untouched."""
    if not extra:
        return None
    merged = dict(os.environ)
    merged.update({k: str(v) for k, v in extra.items()})
    return merged
