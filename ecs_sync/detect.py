from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Set

from .runner import CommandRunner


def modules_from_paths(paths: Iterable[str], root: str) -> List[str]:
    """Reduce changed file paths to the module directories they touch.

    A module is the first path segment below ``root``. Order follows first
    appearance; duplicates are dropped. Files sitting directly in ``root`` are
    not modules.
    """
    prefix = root.strip("/") + "/"
    out: List[str] = []
    seen: Set[str] = set()
    for raw in paths:
        p = str(raw or "").strip()
        if not p.startswith(prefix):
            continue
        parts = p[len(prefix):].split("/", 1)
        if len(parts) < 2 or not parts[0]:
            continue
        module = parts[0]
        if module in seen:
            continue
        seen.add(module)
        out.append(module)
    return out


def fetch_base_branch(runner: CommandRunner, source_dir: Path, base_branch: str, *, timeout: Optional[float] = None) -> None:
    # An unreachable base ref raises CommandError; there is no empty-diff fallback.
    refspec = f"+refs/heads/{base_branch}:refs/remotes/origin/{base_branch}"
    runner.run(["git", "fetch", "origin", refspec], cwd=source_dir, timeout=timeout)


def changed_paths(runner: CommandRunner, source_dir: Path, base_branch: str, *, timeout: Optional[float] = None) -> List[str]:
    res = runner.run(["git", "diff", "--name-only", f"origin/{base_branch}"], cwd=source_dir, timeout=timeout)
    return [line.strip() for line in res.stdout.splitlines() if line.strip()]


def detect_updated_modules(
    runner: CommandRunner,
    source_dir: Path,
    *,
    base_branch: str,
    root: str,
    timeout: Optional[float] = None,
) -> List[str]:
    """Fetch ``base_branch`` and list the modules under ``root`` that differ from it."""
    fetch_base_branch(runner, source_dir, base_branch, timeout=timeout)
    modules = modules_from_paths(changed_paths(runner, source_dir, base_branch, timeout=timeout), root)
    print(f"[ECS_SYNC] Updated ECS modules: {' '.join(modules) or '(none)'}")
    return modules
