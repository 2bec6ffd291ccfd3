"""ECS index-template sync.

Detects ECS modules changed against a base branch, regenerates their
Elasticsearch index templates with the mapping generator, and publishes them
to the plugins repository through a pull request.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.1.1"
