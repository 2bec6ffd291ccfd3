"""Downstream repository publisher.

Walks the plugins repository through

    not_cloned -> cloned -> branch_selected -> artifacts_copied
        -> committed_and_pushed | no_changes

Every transition is a git call through the injected ``CommandRunner``. Nothing
is rolled back on failure: a branch that was already pushed stays pushed.
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .config import SyncConfig
from .errors import CommandError, GenerationError, ValidationError
from .messages import commit_message
from .models import PublishReport, UpsertResult
from .runner import CommandRunner
from .utils.fs import ensure_dir, remove_tree, transfer_file

# git ls-remote --exit-code: 2 means "no matching refs".
LS_REMOTE_NO_MATCH = 2


def git_auth_env(url: str, token: str) -> Optional[Dict[str, str]]:
    """Environment that makes git send ``token`` for https remotes.

    Uses git's ``GIT_CONFIG_*`` variables so the header never reaches
    ``.git/config`` or the command line.
    """
    if not token or not url.startswith("https://"):
        return None
    basic = base64.b64encode(f"x-access-token:{token}".encode("utf-8")).decode("ascii")
    return {
        "GIT_TERMINAL_PROMPT": "0",
        "GIT_CONFIG_COUNT": "1",
        "GIT_CONFIG_KEY_0": "http.extraheader",
        "GIT_CONFIG_VALUE_0": f"AUTHORIZATION: basic {basic}",
    }


class RepositoryPublisher:
    def __init__(self, *, runner: CommandRunner, config: SyncConfig, token: str = ""):
        self.runner = runner
        self.config = config
        self.token = token
        self.path = Path(config.local_path)
        self.report = PublishReport()
        self._auth_env = git_auth_env(self.config.clone_url(), token)

    def _git(self, *args: str, check: bool = True, cwd: Optional[Path] = None):
        return self.runner.run(
            ["git", *args],
            cwd=cwd if cwd is not None else self.path,
            timeout=self.config.command_timeout,
            check=check,
            env=self._auth_env,
        )

    def ensure_clone(self) -> None:
        """Clone or reuse the checkout and leave it on the tip of the base branch.

        ``origin`` always holds the plain URL; credentials only travel in the
        environment of each git call.
        """
        url = self.config.clone_url()
        base = self.config.base_branch
        if self.path.exists():
            if not (self.path / ".git").exists():
                raise ValidationError(f"downstream path exists but is not a git checkout: {self.path}")
            print(f"[PUBLISH] Reusing checkout at {self.path}")
            self._git("remote", "set-url", "origin", url)
            self._configure_identity()
            self._git("fetch", "--prune", "origin")
        else:
            ensure_dir(self.path.parent)
            print(f"[PUBLISH] Cloning {self.config.repository} into {self.path}")
            self._git("clone", url, str(self.path), cwd=self.path.parent)
            self._configure_identity()
        self._git("checkout", "-B", base, f"origin/{base}")
        self.report.state = "cloned"

    def _configure_identity(self) -> None:
        self._git("config", "user.email", self.config.git_user_email)
        self._git("config", "user.name", self.config.git_user_name)

    def remote_branch_exists(self, branch: str) -> bool:
        res = self._git("ls-remote", "--exit-code", "--heads", "origin", branch, check=False)
        if res.returncode == 0:
            return True
        if res.returncode == LS_REMOTE_NO_MATCH:
            return False
        raise CommandError(res)

    def select_branch(self, branch: str) -> UpsertResult:
        """Check out ``branch`` at its remote tip, or create it from the base branch and push it."""
        if self.remote_branch_exists(branch):
            print(f"[PUBLISH] Branch {branch} exists, updating")
            self._git("fetch", "origin", f"+refs/heads/{branch}:refs/remotes/origin/{branch}")
            self._git("checkout", "-B", branch, f"origin/{branch}")
            result = UpsertResult(action="updated", ref=branch)
        else:
            print(f"[PUBLISH] Branch {branch} does not exist, creating")
            self._git("checkout", "-B", branch, f"origin/{self.config.base_branch}")
            self._git("push", "--set-upstream", "origin", branch)
            result = UpsertResult(action="created", ref=branch)
        self.report.branch = result
        self.report.state = "branch_selected"
        return result

    def copy_artifacts(self, modules: Sequence[str], artifacts: Mapping[str, Path]) -> List[str]:
        dest_dir = self.path / self.config.resources_dir
        copied: List[str] = []
        for m in modules:
            target = self.config.modules.get(m)
            if not target:
                print(f"[PUBLISH] No corresponding file for module {m}")
                continue
            src = artifacts.get(m)
            if src is None:
                raise GenerationError(f"no generated artifact for module {m}")
            print(f"[PUBLISH] Copying ECS template for module {m} to {target}")
            transfer_file(Path(src), dest_dir / target, self.config.transfer)
            copied.append(target)
        self.report.copied = copied
        self.report.state = "artifacts_copied"
        return copied

    def has_staged_changes(self) -> bool:
        res = self._git("diff", "--cached", "--quiet", check=False)
        if res.returncode == 0:
            return False
        if res.returncode == 1:
            return True
        raise CommandError(res)

    def commit_and_push(self, branch: str, modules: Sequence[str]) -> bool:
        """Stage everything and commit when the tree changed.

        Returns False (state ``no_changes``) when there is nothing to commit.
        """
        status = self._git("status", "--short")
        if status.stdout.strip():
            print(status.stdout.rstrip())
        self._git("add", "--all")
        if not self.has_staged_changes():
            print("[PUBLISH] No changes to commit")
            self.report.state = "no_changes"
            return False

        message = commit_message(modules)
        self._git("commit", "-m", message)
        self._git("push", "origin", branch)
        self.report.commit_message = message
        self.report.state = "committed_and_pushed"
        return True

    def publish(self, branch: str, modules: Sequence[str], artifacts: Mapping[str, Path]) -> PublishReport:
        self.ensure_clone()
        self.select_branch(branch)
        self.copy_artifacts(modules, artifacts)
        self.commit_and_push(branch, modules)
        return self.report

    def cleanup(self) -> None:
        if self.config.cleanup_clone:
            print(f"[PUBLISH] Removing checkout at {self.path}")
            remove_tree(self.path)

