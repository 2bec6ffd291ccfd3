from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write bytes atomically so a checkout never sees a half-written template."""
    ensure_dir(path.parent)
    fd, tmp = tempfile.mkstemp(prefix=path.name, dir=str(path.parent))
    tmp_path = Path(tmp)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def transfer_file(src: Path, dst: Path, policy: str = "copy") -> Path:
    """Place ``src`` at ``dst``, creating parent directories.

    ``copy`` leaves the source in place; ``move`` removes it.
    """
    if policy not in ("copy", "move"):
        raise ValueError(f"unknown transfer policy: {policy!r}")
    if policy == "move":
        ensure_dir(dst.parent)
        shutil.move(str(src), str(dst))
    else:
        atomic_write_bytes(dst, src.read_bytes())
    return dst


def remove_tree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
