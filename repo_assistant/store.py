"""
store.py
--------
JSON-backed persistence for projects and query documents.

Layout under the output directory:
- `<name>.json`                       -> Project
- `<project>/queries/<query_id>.json` -> {"query": ..., "analysis_chat_history": [...]}

History is stored as an already-resolved linear list of turns; the agent never sees
any other storage shape.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from .errors import NotFoundError
from .models import ConversationTurn, Project

NO_QUERY_TEXT = "No previous query found"


class ProjectStore:
    def __init__(self, output_dir: str) -> None:
        self.root = Path(output_dir)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        return self.root / f"{name}.json"

    def read(self, name: str) -> Project:
        p = self._path(name)
        if not p.exists():
            raise NotFoundError(f"Project not found: {name}")
        try:
            return Project.model_validate_json(p.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise NotFoundError(f"Project {name} could not be loaded: {e}") from e

    def write(self, project: Project) -> None:
        self._path(project.name).write_text(project.model_dump_json(indent=2), encoding="utf-8")


class QueryStore:
    """
    Per-project query documents. A lookup by id that misses falls back to the most
    recently modified document of that project, once; there is no further fallback.
    """
    def __init__(self, output_dir: str) -> None:
        self.root = Path(output_dir)

    def _dir(self, project_name: str) -> Path:
        return self.root / project_name / "queries"

    def _path(self, project_name: str, query_id: str) -> Path:
        return self._dir(project_name) / f"{query_id}.json"

    def _load(self, p: Path) -> Optional[Dict[str, Any]]:
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable query document {p}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def _most_recent(self, project_name: str) -> Optional[Path]:
        d = self._dir(project_name)
        if not d.is_dir():
            return None
        candidates = sorted(d.glob("*.json"), key=lambda p: p.stat().st_mtime, reverse=True)
        return candidates[0] if candidates else None

    def resolve(self, project_name: str, query_id: str) -> Optional[Path]:
        p = self._path(project_name, query_id)
        if p.exists():
            return p
        fallback = self._most_recent(project_name)
        if fallback is not None:
            logger.info(f"Query {query_id} not found for {project_name}; using {fallback.stem}")
        return fallback

    def read(self, project_name: str, query_id: str) -> Dict[str, Any]:
        p = self.resolve(project_name, query_id)
        if p is None:
            return {}
        return self._load(p) or {}

    def query_text(self, project_name: str, query_id: str) -> str:
        text = self.read(project_name, query_id).get("query")
        return text if isinstance(text, str) and text.strip() else NO_QUERY_TEXT

    def history(self, project_name: str, query_id: str) -> List[ConversationTurn]:
        turns: List[ConversationTurn] = []
        for raw in self.read(project_name, query_id).get("analysis_chat_history") or []:
            try:
                turns.append(ConversationTurn.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed turn in query {query_id}: {e}")
        return turns

    def append_turns(self, project_name: str, query_id: str, turns: List[ConversationTurn]) -> None:
        p = self.resolve(project_name, query_id)
        if p is None:
            raise NotFoundError(f"Query not found: {project_name}/{query_id}")
        data = self._load(p) or {}
        history = list(data.get("analysis_chat_history") or [])
        history.extend(t.model_dump(mode="json") for t in turns)
        data["analysis_chat_history"] = history
        p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
