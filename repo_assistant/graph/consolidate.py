"""
consolidate.py
--------------
Merge semantic hits, LLM-suggested paths and keyword hits into one set of
canonical paths, and decide how much of each file to load.

Only an explicit LLM relevance judgement (a suggested path) earns a file its full
source; everything else enters the context as a summary.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, Set, Tuple

from ..models import LoadMode, Project, SearchHit
from .file_context import FileContextLoader, summary_key_to_path
from .paths import normalize_project_path


def _add_normalized(
    out: Set[str], raw: str, project: Project, thoughts: List[str], source: str
) -> None:
    normalized = normalize_project_path(raw, project)
    if normalized is None:
        thoughts.append(f"Could not normalize path from {source}: {raw}")
        return
    out.add(normalized)


def consolidate(
    project: Project,
    semantic_hits: Iterable[SearchHit],
    lexical_hits: Iterable[Tuple[str, float]],
    suggested_paths: Iterable[str],
    thoughts: List[str],
) -> Set[str]:
    """
    Return the deduplicated set of canonical paths named by any source.

    Keyword hits arrive as summary-index keys and are translated back to source
    paths before normalization. Unresolvable entries become thoughts.
    """
    paths: Set[str] = set()

    for raw in suggested_paths:
        _add_normalized(paths, raw, project, thoughts, "LLM suggestions")

    for hit in semantic_hits:
        _add_normalized(paths, hit.path, project, thoughts, "vector search results")

    for key, _score in lexical_hits:
        target = summary_key_to_path(key, project.name)
        if target is None:
            thoughts.append(f"Could not extract target path from summary hit: {key}")
            continue
        _add_normalized(paths, target, project, thoughts, "keyword search results")

    return paths


def classify(path: str, suggested: Set[str]) -> LoadMode:
    return LoadMode.FULL_SOURCE if path in suggested else LoadMode.SUMMARY_ONLY


def populate_file_context(
    loader: FileContextLoader,
    project: Project,
    paths: Set[str],
    suggested: Set[str],
    thoughts: List[str],
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Load full source for suggested paths and summaries for the rest.

    A suggested file whose source cannot be read falls back to its summary.
    """
    full_source: Dict[str, str] = {}
    summaries: Dict[str, str] = {}

    for path in sorted(paths):
        if classify(path, suggested) is not LoadMode.FULL_SOURCE:
            continue
        content = loader.read_source(project, path)
        if content is not None:
            full_source[path] = content
            thoughts.append(f"Added full source (from LLM suggestion): {path}")
            continue
        thoughts.append(f"Failed to read suggested file for full source: {path}. Trying summary.")

    remaining = [p for p in sorted(paths) if p not in full_source]
    summaries.update(loader.load_summaries(project, remaining, thoughts))
    return full_source, summaries
