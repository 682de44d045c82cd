"""
keyword_index.py
----------------
Keyword ranking over a project's summary files using SQLite FTS5 `bm25()`.

The index is rebuilt in memory for every search from the `.yml` files in the scope
directory, so it always reflects what the ingestion pipeline last wrote. Two
columns are weighted separately: the escaped file name and the document body.
Keys returned are the summary file paths; translating them back to source paths
is the consolidator's job.
"""
from __future__ import annotations
import asyncio
import re
import sqlite3
from pathlib import Path
from typing import List, Tuple

from loguru import logger

from ..errors import CollaboratorError
from ..models import Project

NAME_WEIGHT = 2.0
BODY_WEIGHT = 1.0

_TOKEN = re.compile(r"[A-Za-z0-9_]+")


def build_match_query(keywords: str) -> str:
    """Quote each keyword and OR them together; empty when nothing is searchable."""
    tokens = dict.fromkeys(t.lower() for t in _TOKEN.findall(keywords or ""))
    return " OR ".join(f'"{t}"' for t in tokens)


class KeywordIndex:
    async def keyword_search(
        self, project: Project, keywords: str, scope_dir: str, top_n: int
    ) -> List[Tuple[str, float]]:
        return await asyncio.to_thread(self._search, project, keywords, scope_dir, top_n)

    def _search(
        self, project: Project, keywords: str, scope_dir: str, top_n: int
    ) -> List[Tuple[str, float]]:
        match = build_match_query(keywords)
        scope = Path(scope_dir)
        if not match or top_n <= 0 or not scope.is_dir():
            return []

        rows = []
        for p in sorted(scope.glob("*.yml")):
            try:
                rows.append((str(p), p.stem.replace("*", " "), p.read_text(encoding="utf-8")))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable summary {p}: {e}")
        if not rows:
            return []

        conn = sqlite3.connect(":memory:")
        try:
            conn.execute("CREATE VIRTUAL TABLE summaries USING fts5(key UNINDEXED, name, body)")
            conn.executemany("INSERT INTO summaries (key, name, body) VALUES (?, ?, ?)", rows)
            cursor = conn.execute(
                "SELECT key, bm25(summaries, 0.0, ?, ?) AS score FROM summaries "
                "WHERE summaries MATCH ? ORDER BY score LIMIT ?",
                (NAME_WEIGHT, BODY_WEIGHT, match, top_n),
            )
            hits = [(key, -float(score)) for key, score in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Keyword search for project {project.name} failed: {e}")
            raise CollaboratorError("keyword search", str(e)) from e
        finally:
            conn.close()

        logger.debug(f"Keyword search '{keywords}' returned {len(hits)} hits")
        return hits
