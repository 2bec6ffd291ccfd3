"""Pull-request create-or-update against the downstream repository.

Two backends share one small protocol:

- ``GhCliPullRequests`` drives the GitHub CLI (the default);
- ``ApiPullRequests`` talks to the REST API with ``requests``.

``upsert_pull_request`` holds the decision logic and returns a tagged
``UpsertResult`` so callers never infer it from exit codes.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests

from ..errors import SyncError, ValidationError
from ..messages import pr_body, pr_title
from ..models import PullRequest, UpsertResult
from ..runner import CommandRunner

GITHUB_API = "https://api.github.com"

_PR_URL_RE = re.compile(r"/pull/(\d+)\s*$")


class PullRequestBackend(Protocol):
    def authenticate(self, token: str) -> None:
        raise NotImplementedError

    def list_open(self, head: str) -> List[PullRequest]:
        raise NotImplementedError

    def create(self, *, title: str, body: str, base: str, head: str) -> int:
        raise NotImplementedError

    def edit(self, number: int, *, title: str, body: str) -> None:
        raise NotImplementedError


class GhCliPullRequests:
    """PullRequestBackend backed by ``gh``, run inside the downstream checkout.

    The caller's token reaches every ``gh`` call as ``GH_TOKEN``, which gh
    prefers over an exported ``GITHUB_TOKEN`` and over stored credentials.
    Nothing is written to gh's own config.
    """

    def __init__(
        self,
        *,
        runner: CommandRunner,
        cwd: Path,
        repository: str = "",
        timeout: Optional[float] = None,
    ):
        self.runner = runner
        self.cwd = Path(cwd)
        self.repository = repository
        self.timeout = timeout
        self.token = ""

    def _gh(self, *args: str):
        env = {"GH_TOKEN": self.token} if self.token else None
        return self.runner.run(["gh", *args], cwd=self.cwd, timeout=self.timeout, env=env)

    def _repo_args(self) -> List[str]:
        return ["--repo", self.repository] if self.repository else []

    def authenticate(self, token: str) -> None:
        if not token:
            raise ValidationError("a GitHub token is required to manage pull requests")
        self.token = token

    def list_open(self, head: str) -> List[PullRequest]:
        res = self._gh("pr", "list", *self._repo_args(), "--head", head, "--state", "open", "--json", "number,updatedAt")
        out = res.stdout.strip()
        data = json.loads(out) if out else []
        return [PullRequest(number=int(p["number"]), updated_at=str(p.get("updatedAt") or "")) for p in data]

    def create(self, *, title: str, body: str, base: str, head: str) -> int:
        res = self._gh("pr", "create", *self._repo_args(), "--title", title, "--body", body, "--base", base, "--head", head)
        m = _PR_URL_RE.search(res.stdout.strip())
        return int(m.group(1)) if m else 0

    def edit(self, number: int, *, title: str, body: str) -> None:
        self._gh("pr", "edit", str(number), *self._repo_args(), "--title", title, "--body", body)


def _github_api_headers(token: str) -> Dict[str, str]:
    return {
        "Authorization": f"token {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "ecs-template-sync",
    }


class ApiPullRequests:
    """PullRequestBackend backed by the GitHub REST API."""

    def __init__(self, *, repository: str, session: Optional[Any] = None, timeout: float = 30):
        if "/" not in repository:
            raise ValidationError(f"repository must be 'owner/name': {repository!r}")
        self.repository = repository
        self.owner = repository.split("/", 1)[0]
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.token = ""

    def _url(self, suffix: str) -> str:
        return f"{GITHUB_API}/repos/{self.repository}/{suffix}"

    def _check(self, r: Any, expected: Sequence[int], what: str) -> Any:
        if r.status_code not in expected:
            raise SyncError(f"GitHub API error {what}: {r.status_code}: {r.text[:2000]}")
        return r.json()

    def authenticate(self, token: str) -> None:
        if not token:
            raise ValidationError("a GitHub token is required to manage pull requests")
        self.token = token

    def list_open(self, head: str) -> List[PullRequest]:
        r = self.session.get(
            self._url("pulls"),
            headers=_github_api_headers(self.token),
            params={"head": f"{self.owner}:{head}", "state": "open", "per_page": 100},
            timeout=self.timeout,
        )
        data = self._check(r, (200,), "listing pull requests")
        return [PullRequest(number=int(p["number"]), updated_at=str(p.get("updated_at") or "")) for p in data]

    def create(self, *, title: str, body: str, base: str, head: str) -> int:
        r = self.session.post(
            self._url("pulls"),
            headers=_github_api_headers(self.token),
            json={"title": title, "body": body, "base": base, "head": head},
            timeout=self.timeout,
        )
        return int(self._check(r, (201,), "creating pull request")["number"])

    def edit(self, number: int, *, title: str, body: str) -> None:
        r = self.session.patch(
            self._url(f"pulls/{number}"),
            headers=_github_api_headers(self.token),
            json={"title": title, "body": body},
            timeout=self.timeout,
        )
        self._check(r, (200,), f"updating pull request #{number}")


def select_pull_request(candidates: Sequence[PullRequest]) -> Optional[PullRequest]:
    """Pick the PR to edit: most recently updated, then highest number."""
    if not candidates:
        return None
    return max(candidates, key=lambda p: (p.updated_at, p.number))


def upsert_pull_request(
    backend: PullRequestBackend,
    *,
    token: str,
    head: str,
    base: str,
    modules: Sequence[str],
) -> UpsertResult:
    """Create the PR for ``head`` or rewrite the existing one in place."""
    title = pr_title(modules)
    body = pr_body(modules)

    backend.authenticate(token)
    existing = backend.list_open(head)
    chosen = select_pull_request(existing)

    if chosen is None:
        number = backend.create(title=title, body=body, base=base, head=head)
        print(f"[PR] Created pull request #{number} for {head}")
        return UpsertResult(action="created", ref=head, number=number)

    if len(existing) > 1:
        others = sorted(p.number for p in existing if p.number != chosen.number)
        print(f"[PR][WARN] several open pull requests for {head}; editing #{chosen.number}, leaving {others}")
    backend.edit(chosen.number, title=title, body=body)
    print(f"[PR] Updated pull request #{chosen.number} for {head}")
    return UpsertResult(action="updated", ref=head, number=chosen.number)
