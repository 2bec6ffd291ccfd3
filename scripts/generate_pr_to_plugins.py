"""Generate ECS templates for modified modules and open a PR in the plugins repo.

Safe invocations:
  - python -m ecs_sync -b <branch> -t <token>
  - python scripts/generate_pr_to_plugins.py -b <branch> -t <token>
  - python scripts/generate_pr_to_plugins.py <branch> <token>   (legacy)

When invoked as a standalone script, we bootstrap sys.path so imports succeed.
"""

from __future__ import annotations

import sys
from pathlib import Path

if __package__ is None or __package__ == "":
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))

from ecs_sync.cli import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
