from __future__ import annotations

from typing import Sequence

MODULE_SEPARATOR = " "


def format_modules(modules: Sequence[str]) -> str:
    return MODULE_SEPARATOR.join(modules)


def commit_message(modules: Sequence[str]) -> str:
    return f"Update ECS templates for modified modules: {format_modules(modules)}"


def pr_title(modules: Sequence[str]) -> str:
    return commit_message(modules)


def pr_body(modules: Sequence[str]) -> str:
    return f"This PR updates the ECS templates for the following modules: {format_modules(modules)}."
