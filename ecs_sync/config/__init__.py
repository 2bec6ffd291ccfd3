"""Sync configuration.

``ecs_sync.yml`` next to this file is the single source of truth for the
module to template mapping and the downstream repository layout.
"""

from .load_sync_config import (
    DEFAULT_CONFIG_PATH,
    SyncConfig,
    load_sync_config,
    resolve_config_path,
)

__all__ = ["DEFAULT_CONFIG_PATH", "SyncConfig", "load_sync_config", "resolve_config_path"]
