from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from ..errors import ValidationError


def read_yaml(path: Path) -> Dict[str, Any]:
    """Parse a YAML mapping; anything else is a validation error."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValidationError(f"YAML parse error in {path}: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"YAML root must be a mapping: {path}")
    return data
