from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

import jsonschema

from ..errors import ValidationError
from ..utils.yamlio import read_yaml

TeardownPolicy = Literal["once", "per_module"]
TransferPolicy = Literal["copy", "move"]
PrBackend = Literal["gh", "api"]

TEARDOWN_POLICIES: Tuple[str, ...] = ("once", "per_module")
TRANSFER_POLICIES: Tuple[str, ...] = ("copy", "move")
PR_BACKENDS: Tuple[str, ...] = ("gh", "api")

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "ecs_sync.yml"


@dataclass(frozen=True)
class SyncConfig:
    """Immutable run configuration, built once and passed to every stage."""

    base_branch: str
    source_root: str
    generator_script: str
    schema_version: str
    artifact_template: str
    repository: str
    local_path: Path
    resources_dir: str
    modules: Mapping[str, str]
    url: str = ""
    cleanup_clone: bool = False
    git_user_name: str = "GitHub Actions"
    git_user_email: str = "github-actions@github.com"
    teardown: TeardownPolicy = "once"
    transfer: TransferPolicy = "copy"
    pr_backend: PrBackend = "gh"
    required_commands: Tuple[str, ...] = ("git", "docker", "gh")
    command_timeout: float = 900.0
    generator_timeout: float = 1800.0

    def artifact_path(self, source_dir: Path, module: str) -> Path:
        rel = self.artifact_template.format(
            root=self.source_root,
            module=module,
            schema_version=self.schema_version,
        )
        return Path(source_dir) / rel

    def clone_url(self) -> str:
        return self.url or f"https://github.com/{self.repository}.git"


def _str_schema() -> Dict[str, Any]:
    return {"type": "string", "minLength": 1}


def _config_schema() -> Dict[str, Any]:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "required": ["base_branch", "source", "downstream", "modules"],
        "properties": {
            "base_branch": _str_schema(),
            "source": {
                "type": "object",
                "required": ["root", "generator_script", "schema_version", "artifact_template"],
                "properties": {
                    "root": _str_schema(),
                    "generator_script": _str_schema(),
                    "schema_version": _str_schema(),
                    "artifact_template": _str_schema(),
                },
                "additionalProperties": False,
            },
            "downstream": {
                "type": "object",
                "required": ["repository", "local_path", "resources_dir"],
                "properties": {
                    "repository": {"type": "string", "pattern": "^[^/\\s]+/[^/\\s]+$"},
                    "url": {"type": "string"},
                    "local_path": _str_schema(),
                    "resources_dir": _str_schema(),
                    "cleanup_clone": {"type": "boolean"},
                },
                "additionalProperties": False,
            },
            "git_identity": {
                "type": "object",
                "properties": {"name": _str_schema(), "email": _str_schema()},
                "additionalProperties": False,
            },
            "generation": {
                "type": "object",
                "properties": {"teardown": {"type": "string", "enum": list(TEARDOWN_POLICIES)}},
                "additionalProperties": False,
            },
            "publish": {
                "type": "object",
                "properties": {
                    "transfer": {"type": "string", "enum": list(TRANSFER_POLICIES)},
                    "pr_backend": {"type": "string", "enum": list(PR_BACKENDS)},
                },
                "additionalProperties": False,
            },
            "required_commands": {"type": "array", "items": _str_schema()},
            "timeouts": {
                "type": "object",
                "properties": {
                    "command": {"type": "number", "exclusiveMinimum": 0},
                    "generator": {"type": "number", "exclusiveMinimum": 0},
                },
                "additionalProperties": False,
            },
            "modules": {
                "type": "object",
                "minProperties": 1,
                "additionalProperties": _str_schema(),
            },
        },
        "additionalProperties": False,
    }


def resolve_config_path(cli_path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Path:
    """Resolve the configuration YAML path.

    Precedence:
      1) CLI flag --config
      2) ECS_SYNC_CONFIG
      3) the packaged ecs_sync.yml
    """
    if cli_path and str(cli_path).strip():
        return Path(str(cli_path).strip()).expanduser().resolve()

    env_map = env if env is not None else os.environ
    env_path = str(env_map.get("ECS_SYNC_CONFIG", "") or "").strip()
    if env_path:
        return Path(env_path).expanduser().resolve()

    return DEFAULT_CONFIG_PATH


def _validate_dict(data: Dict[str, Any], path: Path) -> None:
    try:
        jsonschema.validate(instance=data, schema=_config_schema())
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ValidationError(f"sync config schema validation failed at {where}: {e.message} ({path})")


def load_sync_config(
    source_dir: Path,
    cli_path: Optional[str] = None,
    *,
    base_branch: Optional[str] = None,
    local_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> SyncConfig:
    """Load and validate the sync configuration.

    Explicit arguments win over environment overrides, which win over YAML:
      - BASE_BRANCH
      - PLUGINS_LOCAL_PATH

    A relative ``downstream.local_path`` is resolved against ``source_dir``.
    """
    env_map = env if env is not None else os.environ
    path = resolve_config_path(cli_path, env_map)
    if not path.exists():
        raise ValidationError(f"sync config not found: {path}")

    data = read_yaml(path)
    _validate_dict(data, path)

    source = data["source"]
    downstream = data["downstream"]
    identity = data.get("git_identity") or {}
    generation = data.get("generation") or {}
    publish = data.get("publish") or {}
    timeouts = data.get("timeouts") or {}

    modules = {str(k).strip(): str(v).strip() for k, v in data["modules"].items()}
    empty = sorted(k for k, v in modules.items() if not k or not v)
    if empty:
        raise ValidationError(f"sync config modules must map to non-empty filenames: {empty}")

    cfg = SyncConfig(
        base_branch=str(data["base_branch"]).strip(),
        source_root=str(source["root"]).strip().strip("/"),
        generator_script=str(source["generator_script"]).strip(),
        schema_version=str(source["schema_version"]).strip(),
        artifact_template=str(source["artifact_template"]).strip(),
        repository=str(downstream["repository"]).strip(),
        url=str(downstream.get("url") or "").strip(),
        local_path=Path(str(downstream["local_path"]).strip()),
        resources_dir=str(downstream["resources_dir"]).strip(),
        cleanup_clone=bool(downstream.get("cleanup_clone", False)),
        modules=MappingProxyType(modules),
        git_user_name=str(identity.get("name") or "GitHub Actions"),
        git_user_email=str(identity.get("email") or "github-actions@github.com"),
        teardown=str(generation.get("teardown") or "once"),  # type: ignore[arg-type]
        transfer=str(publish.get("transfer") or "copy"),  # type: ignore[arg-type]
        pr_backend=str(publish.get("pr_backend") or "gh"),  # type: ignore[arg-type]
        required_commands=tuple(data["required_commands"]) if "required_commands" in data else ("git", "docker", "gh"),
        command_timeout=float(timeouts.get("command", 900)),
        generator_timeout=float(timeouts.get("generator", 1800)),
    )

    branch = (base_branch or "").strip() or str(env_map.get("BASE_BRANCH", "") or "").strip()
    if branch:
        cfg = replace(cfg, base_branch=branch)

    lp = (local_path or "").strip() or str(env_map.get("PLUGINS_LOCAL_PATH", "") or "").strip()
    if lp:
        cfg = replace(cfg, local_path=Path(lp))

    resolved = cfg.local_path.expanduser()
    if not resolved.is_absolute():
        resolved = Path(source_dir) / resolved
    return replace(cfg, local_path=resolved.resolve())
