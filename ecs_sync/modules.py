from __future__ import annotations

from typing import Iterable, List, Mapping, Set, Tuple


def filter_relevant_modules(detected: Iterable[str], module_files: Mapping[str, str]) -> Tuple[List[str], List[str]]:
    """Split detected modules into (relevant, skipped).

    Membership is exact key equality against ``module_files``. Detection order is
    kept and repeats are dropped. Unmapped modules are reported, never fatal.
    """
    relevant: List[str] = []
    skipped: List[str] = []
    seen: Set[str] = set()
    for m in detected:
        if m in seen:
            continue
        seen.add(m)
        if module_files.get(m):
            relevant.append(m)
        else:
            skipped.append(m)
            print(f"[ECS_SYNC] No mapped template for module {m}, skipping")
    print(f"[ECS_SYNC] Relevant ECS modules: {' '.join(relevant) or '(none)'}")
    return relevant, skipped
