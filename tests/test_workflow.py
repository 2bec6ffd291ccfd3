from __future__ import annotations

import io
from contextlib import redirect_stdout
from pathlib import Path
from typing import List

import pytest

from _fakes import FakeBackend, FakeRunner, clone_creates_checkout, generator_writes_artifacts, make_config

from ecs_sync.errors import DependencyError, ValidationError
from ecs_sync.models import PullRequest
from ecs_sync.workflow import run_sync


def _which_all(name: str) -> str:
    return f"/usr/bin/{name}"


def _runner_for(cfg, src: Path, changed: List[str], staged_changes: bool = True) -> FakeRunner:
    runner = FakeRunner()
    runner.on("git", "diff", "--name-only", stdout="\n".join(changed) + "\n")
    runner.on("git", "diff", "--cached", "--quiet", returncode=1 if staged_changes else 0)
    runner.on("git", "ls-remote", returncode=2)
    runner.on("git", "clone", action=clone_creates_checkout)
    runner.on("bash", action=generator_writes_artifacts(cfg, src))
    return runner


def test_scenario_unknown_module_is_skipped(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    cfg = make_config(tmp_path)
    runner = _runner_for(cfg, src, ["ecs/alerts/fields/a.yml", "ecs/unknown-module/x.yml", "ecs/states-fim/fields/b.yml"])
    backend = FakeBackend([])

    with redirect_stdout(io.StringIO()) as out:
        result = run_sync(source_dir=src, branch="ecs-update", token="tok", config=cfg, runner=runner, pr_backend=backend, which=_which_all)

    assert result.outcome == "published"
    assert result.relevant_modules == ["alerts", "states-fim"]
    assert result.skipped_modules == ["unknown-module"]
    assert "unknown-module" in out.getvalue()

    commit = runner.commands("git", "commit")[0]
    assert "alerts states-fim" in commit[-1]
    assert result.publish.copied == ["index-template-alerts.json", "index-template-fim.json"]
    assert len(list((cfg.local_path / cfg.resources_dir).iterdir())) == 2

    assert result.pull_request.action == "created"
    assert "unknown-module" not in backend.created[0]["body"]
    assert "unknown-module" not in backend.created[0]["title"]


def test_nothing_under_root_means_no_generation_and_no_clone(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    cfg = make_config(tmp_path)
    runner = _runner_for(cfg, src, ["README.md", "docs/index.md"])
    backend = FakeBackend([])

    with redirect_stdout(io.StringIO()):
        result = run_sync(source_dir=src, branch="b", token="tok", config=cfg, runner=runner, pr_backend=backend, which=_which_all)

    assert result.outcome == "nothing_to_do"
    assert [c for c in runner.calls if c.argv[0] == "bash"] == []
    assert runner.commands("git", "clone") == []
    assert not cfg.local_path.exists()
    assert backend.created == [] and backend.tokens == []


def test_only_unmapped_modules_is_nothing_to_do(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    cfg = make_config(tmp_path)
    runner = _runner_for(cfg, src, ["ecs/legacy-module/x.yml"])

    with redirect_stdout(io.StringIO()):
        result = run_sync(source_dir=src, branch="b", token="tok", config=cfg, runner=runner, pr_backend=FakeBackend([]), which=_which_all)

    assert result.outcome == "nothing_to_do"
    assert result.skipped_modules == ["legacy-module"]
    assert runner.commands("git", "clone") == []


def test_no_working_tree_changes_skips_pull_request(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    cfg = make_config(tmp_path)
    runner = _runner_for(cfg, src, ["ecs/alerts/a.yml"], staged_changes=False)
    backend = FakeBackend([PullRequest(number=5)])

    with redirect_stdout(io.StringIO()):
        result = run_sync(source_dir=src, branch="b", token="tok", config=cfg, runner=runner, pr_backend=backend, which=_which_all)

    assert result.outcome == "no_changes"
    assert result.pull_request is None
    assert runner.commands("git", "commit") == []
    assert backend.edited == [] and backend.created == []


def test_existing_pr_is_edited(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    cfg = make_config(tmp_path)
    runner = _runner_for(cfg, src, ["ecs/states-fim/a.yml"])
    backend = FakeBackend([PullRequest(number=31, updated_at="2026-01-01T00:00:00Z")])

    with redirect_stdout(io.StringIO()):
        result = run_sync(source_dir=src, branch="b", token="tok", config=cfg, runner=runner, pr_backend=backend, which=_which_all)

    assert result.pull_request.action == "updated"
    assert result.pull_request.number == 31
    assert backend.created == []


def test_no_publish_generates_only(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    cfg = make_config(tmp_path)
    runner = _runner_for(cfg, src, ["ecs/alerts/a.yml"])

    with redirect_stdout(io.StringIO()):
        result = run_sync(source_dir=src, branch="b", token="", config=cfg, runner=runner, which=_which_all, publish=False)

    assert result.outcome == "generated_only"
    assert cfg.artifact_path(src, "alerts").is_file()
    assert runner.commands("git", "clone") == []


def test_missing_dependency_fails_before_any_command(tmp_path: Path) -> None:
    cfg = make_config(tmp_path, required_commands=("git", "docker", "gh"))
    runner = FakeRunner()

    with pytest.raises(DependencyError) as ei:
        run_sync(
            source_dir=tmp_path,
            branch="b",
            token="tok",
            config=cfg,
            runner=runner,
            which=lambda n: None if n in ("docker", "gh") else "/usr/bin/git",
        )

    assert ei.value.missing == ["docker", "gh"]
    assert runner.calls == []


def test_token_required_when_publishing(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        run_sync(source_dir=tmp_path, branch="b", token="", config=make_config(tmp_path), runner=FakeRunner(), which=_which_all)
