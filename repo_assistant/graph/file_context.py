"""
file_context.py
---------------
Best-effort loading of full file contents and per-file summaries.

Summaries live next to each other under `<output_dir>/<project>/`, one YAML file
per source file, named after the source path with '/' replaced by '*'. The
summary text is the `description` key of the front-matter block.

Both batch loaders are partial-success: an entry that cannot be read or parsed is
left out and noted in `thoughts`; the batch itself never fails.
"""
from __future__ import annotations
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml
from loguru import logger

from ..models import Project

SUMMARY_SUFFIX = ".yml"


def summary_file_name(path: str) -> str:
    return path.replace("/", "*") + SUMMARY_SUFFIX


def summary_key_to_path(indexed_key: str, project_name: str) -> Optional[str]:
    """
    Recover a source path from a keyword-index key such as
    `out/<project>/src*models*mod.rs.yml`. None when the key has no project segment.
    """
    marker = f"{project_name}/"
    idx = indexed_key.rfind(marker)
    if idx == -1:
        return None
    name = indexed_key[idx + len(marker):]
    if name.endswith(SUMMARY_SUFFIX):
        name = name[: -len(SUMMARY_SUFFIX)]
    return name.replace("*", "/") or None


def parse_description(text: str) -> Optional[str]:
    """Pull `description` out of a summary document's front matter."""
    lines = text.splitlines()
    if lines and lines[0].strip() == "---":
        body: List[str] = []
        for line in lines[1:]:
            if line.strip() == "---":
                break
            body.append(line)
        front = "\n".join(body)
    else:
        front = text
    data = yaml.safe_load(front)
    if not isinstance(data, dict):
        return None
    desc = data.get("description")
    if desc is None:
        return None
    desc = str(desc).strip()
    return desc or None


class FileContextLoader:
    """Reads source files from the project checkout and summaries from the output dir."""

    def __init__(self, output_dir: str) -> None:
        self.output_dir = Path(output_dir)

    def project_dir(self, project: Project) -> Path:
        return self.output_dir / project.name

    def summary_location(self, project: Project, path: str) -> Path:
        return self.project_dir(project) / summary_file_name(path)

    def read_source(self, project: Project, path: str) -> Optional[str]:
        root = Path(project.root_dir)
        for candidate in (root / path, root / path.lstrip("/")):
            try:
                return candidate.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
        return None

    def read_summary(self, project: Project, path: str) -> Optional[str]:
        location = self.summary_location(project, path)
        try:
            return parse_description(location.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.debug(f"Summary unreadable for {path} at {location}: {e}")
            return None

    def load_full_contents(
        self, project: Project, paths: Iterable[str], thoughts: List[str]
    ) -> Dict[str, str]:
        contents: Dict[str, str] = {}
        for path in paths:
            content = self.read_source(project, path)
            if content is None:
                logger.warning(f"Failed to read file: {path}")
                thoughts.append(f"Failed to read file: {path}")
                continue
            contents[path] = content
        return contents

    def load_summaries(
        self, project: Project, paths: Iterable[str], thoughts: List[str]
    ) -> Dict[str, str]:
        summaries: Dict[str, str] = {}
        for path in paths:
            summary = self.read_summary(project, path)
            if summary is None:
                thoughts.append(
                    f"Failed to get summary for {path}: {self.summary_location(project, path)}"
                )
                continue
            summaries[path] = summary
        return summaries
