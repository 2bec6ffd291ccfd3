from __future__ import annotations

import shutil
from typing import Callable, Iterable, List, Optional, Set

from .errors import DependencyError


def missing_commands(commands: Iterable[str], which: Optional[Callable[[str], Optional[str]]] = None) -> List[str]:
    """Return required commands that are not found on PATH, in input order."""
    lookup = which or shutil.which
    out: List[str] = []
    seen: Set[str] = set()
    for c in commands:
        name = str(c or "").strip()
        if not name or name in seen:
            continue
        seen.add(name)
        if lookup(name) is None:
            out.append(name)
    return out


def require_commands(commands: Iterable[str], which: Optional[Callable[[str], Optional[str]]] = None) -> None:
    """Fail fast when any required external command is missing.

    No installation is attempted; the error names every missing command.
    """
    missing = missing_commands(commands, which=which)
    if missing:
        raise DependencyError(missing)
