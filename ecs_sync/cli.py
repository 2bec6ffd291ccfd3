from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import List, Optional

from .config import load_sync_config
from .errors import CommandError, DependencyError, SyncError, ValidationError
from .workflow import run_sync

USAGE_HINT = "Usage: ecs-sync -b <branch_name> [-t <github_token>]  (or: ecs-sync <branch_name> <github_token>)"


def exit_code_for(returncode: int) -> int:
    """Shell-style exit status: signals map to 128 + signal number."""
    if returncode < 0:
        return 128 + (-returncode)
    return returncode or 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ecs-sync",
        description="Regenerate modified ECS index templates and open a pull request in the plugins repository.",
    )
    p.add_argument("legacy_branch", nargs="?", metavar="branch_name", help=argparse.SUPPRESS)
    p.add_argument("legacy_token", nargs="?", metavar="github_token", help=argparse.SUPPRESS)
    p.add_argument("-b", "--branch", help="Target branch in the plugins repository")
    p.add_argument("-t", "--token", help="GitHub token (defaults to GITHUB_TOKEN)")
    p.add_argument("--config", help="Sync configuration YAML (defaults to ECS_SYNC_CONFIG or the packaged file)")
    p.add_argument("--source-dir", default=".", help="Source checkout containing the ECS modules")
    p.add_argument("--base-branch", help="Base branch for diffing and pull requests (defaults to BASE_BRANCH or config)")
    p.add_argument("--plugins-path", help="Local checkout path of the plugins repository (defaults to PLUGINS_LOCAL_PATH or config)")
    p.add_argument("--no-publish", action="store_true", help="Detect and generate only; do not touch the plugins repository")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    branch = (args.branch or args.legacy_branch or "").strip()
    token = (args.token or args.legacy_token or os.environ.get("GITHUB_TOKEN") or "").strip()
    publish = not args.no_publish

    if not branch or (publish and not token):
        print(USAGE_HINT, file=sys.stderr)
        return 1

    source_dir = Path(args.source_dir).resolve()
    try:
        config = load_sync_config(
            source_dir,
            args.config,
            base_branch=args.base_branch,
            local_path=args.plugins_path,
        )
        result = run_sync(source_dir=source_dir, branch=branch, token=token, config=config, publish=publish)
    except (ValidationError, DependencyError) as e:
        print(f"[ECS_SYNC][FAIL] {e}", file=sys.stderr)
        return 1
    except CommandError as e:
        print(f"[ECS_SYNC][FAIL] {e}", file=sys.stderr)
        return exit_code_for(e.returncode)
    except SyncError as e:
        print(f"[ECS_SYNC][FAIL] {e}", file=sys.stderr)
        return 1

    summary = {
        "outcome": result.outcome,
        "relevant_modules": result.relevant_modules,
        "skipped_modules": result.skipped_modules,
    }
    if result.pull_request is not None:
        summary["pull_request"] = {"action": result.pull_request.action, "number": result.pull_request.number}
    print(json.dumps(summary))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
