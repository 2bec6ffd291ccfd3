from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .config import SyncConfig
from .deps import require_commands
from .detect import detect_updated_modules
from .errors import ValidationError
from .generator import MappingGenerator
from .github.pulls import ApiPullRequests, GhCliPullRequests, PullRequestBackend, upsert_pull_request
from .models import SyncResult
from .modules import filter_relevant_modules
from .publish import RepositoryPublisher
from .runner import CommandRunner, SubprocessRunner


def build_pr_backend(config: SyncConfig, runner: CommandRunner) -> PullRequestBackend:
    if config.pr_backend == "api":
        return ApiPullRequests(repository=config.repository, timeout=min(config.command_timeout, 60.0))
    return GhCliPullRequests(
        runner=runner,
        cwd=config.local_path,
        repository=config.repository,
        timeout=config.command_timeout,
    )


def run_sync(
    *,
    source_dir: Path,
    branch: str,
    token: str,
    config: SyncConfig,
    runner: Optional[CommandRunner] = None,
    pr_backend: Optional[PullRequestBackend] = None,
    which: Optional[Callable[[str], Optional[str]]] = None,
    publish: bool = True,
) -> SyncResult:
    """Detect changed ECS modules, regenerate their templates and publish them.

    Stages run strictly in order and any failure propagates. The benign
    terminations (nothing to do, nothing changed) return normally with the
    matching ``outcome``.
    """
    if not branch.strip():
        raise ValidationError("branch name is required")
    if publish and not token:
        raise ValidationError("GitHub token is required (use -t or GITHUB_TOKEN)")

    source_dir = Path(source_dir).resolve()
    if runner is None:
        runner = SubprocessRunner(default_timeout=config.command_timeout, secrets=[token])

    require_commands(config.required_commands, which=which)

    detected = detect_updated_modules(
        runner,
        source_dir,
        base_branch=config.base_branch,
        root=config.source_root,
        timeout=config.command_timeout,
    )
    relevant, skipped = filter_relevant_modules(detected, config.modules)
    result = SyncResult(outcome="nothing_to_do", detected_modules=detected, relevant_modules=relevant, skipped_modules=skipped)
    if not relevant:
        print(f"[ECS_SYNC] No relevant modifications detected in {config.source_root}/ directory.")
        return result

    artifacts = MappingGenerator(runner=runner, config=config, source_dir=source_dir).generate_all(relevant)

    if not publish:
        print("[ECS_SYNC] Publishing disabled; generated templates left in place.")
        result.outcome = "generated_only"
        return result

    publisher = RepositoryPublisher(runner=runner, config=config, token=token)
    result.publish = publisher.publish(branch, relevant, artifacts)
    if result.publish.state == "no_changes":
        print("[ECS_SYNC] Templates already up to date; no pull request changes.")
        result.outcome = "no_changes"
        publisher.cleanup()
        return result

    backend = pr_backend if pr_backend is not None else build_pr_backend(config, runner)
    result.pull_request = upsert_pull_request(
        backend,
        token=token,
        head=branch,
        base=config.base_branch,
        modules=relevant,
    )
    result.outcome = "published"
    publisher.cleanup()
    print("[ECS_SYNC] ECS Generator script completed.")
    return result
