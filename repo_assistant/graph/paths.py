"""
paths.py
--------
Canonicalize file references coming from LLM output, vector payloads and summary
file names into the keys used by a project's description/embedding maps.

Upstream producers disagree on conventions (leading slashes, missing or doubled
source roots, bare file names), so several candidates are tried in order and the
first one that names a known file wins. Exact matches are tried before the suffix
scan, which walks every known path.
"""
from __future__ import annotations
from typing import Iterable, Optional, Set

from ..models import Project


def _join_root(source_dir: str, rel: str) -> str:
    root = source_dir.strip().rstrip("/")
    rel = rel.lstrip("/")
    return f"{root}/{rel}" if root else rel


def _src_segment(raw: str) -> int:
    """Index of the first whole `src/` segment, or -1 (`mysrc/` does not count)."""
    if raw.startswith("src/"):
        return 0
    idx = raw.find("/src/")
    return idx + 1 if idx != -1 else -1


def normalize_path(
    raw_path: str,
    known_full_paths: Iterable[str],
    known_summary_paths: Iterable[str],
    source_dir: str = "",
) -> Optional[str]:
    """
    Map `raw_path` onto a known path, or return None when nothing matches.

    Order: exact, leading '/' stripped, prefixed with the source root, re-rooted
    after the first 'src/' segment, then a path-segment suffix match.
    """
    known: Set[str] = set(known_full_paths) | set(known_summary_paths)
    raw = (raw_path or "").strip().replace("\\", "/")
    if not raw:
        return None

    if raw in known:
        return raw

    if raw.startswith("/"):
        stripped = raw[1:]
        if stripped in known:
            return stripped

    root = source_dir.strip().rstrip("/")
    if root and not raw.lstrip("/").startswith(f"{root}/"):
        candidate = _join_root(root, raw)
        if candidate in known:
            return candidate

    idx = _src_segment(raw)
    if root and idx != -1:
        candidate = _join_root(root, raw[idx + len("src/"):])
        if candidate in known:
            return candidate

    suffix = raw.lstrip("/")
    for path in sorted(known):
        if path == suffix or path.endswith("/" + suffix):
            return path

    return None


def normalize_project_path(raw_path: str, project: Project) -> Optional[str]:
    return normalize_path(
        raw_path,
        project.embeddings.keys(),
        project.file_descriptions.keys(),
        project.source_dir,
    )
