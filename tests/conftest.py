"""
Pytest configuration for the repo_assistant test suite.

Provides an on-disk sample project: a source checkout with three files and the
matching summary documents under an output directory.
"""
from pathlib import Path

import pytest

from repo_assistant.config import Settings
from repo_assistant.graph.file_context import FileContextLoader, summary_file_name
from repo_assistant.models import EmbeddingMetadata, Project

SOURCES = {
    "src/a.rs": "fn a() { println!(\"a\"); }\n",
    "src/b.rs": "fn b() -> u32 { 2 }\n",
    "src/models/mod.rs": "pub mod user;\n",
}

SUMMARIES = {
    "src/a.rs": "Entry point that prints a greeting.",
    "src/b.rs": "Helper returning a constant.",
    "src/models/mod.rs": "Declares the data models.",
}


def write_summary(project_dir: Path, path: str, description: str) -> Path:
    target = project_dir / summary_file_name(path)
    target.write_text(f"---\ndescription: {description}\n---\n", encoding="utf-8")
    return target


@pytest.fixture
def output_dir(tmp_path) -> Path:
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def project(tmp_path, output_dir) -> Project:
    repo = tmp_path / "repo"
    for rel, content in SOURCES.items():
        f = repo / rel
        f.parent.mkdir(parents=True, exist_ok=True)
        f.write_text(content, encoding="utf-8")

    project_dir = output_dir / "demo"
    project_dir.mkdir()
    for rel, description in SUMMARIES.items():
        write_summary(project_dir, rel, description)

    return Project(
        name="demo",
        root_dir=str(repo),
        source_dir="src",
        file_descriptions={p: f"Static description of {p}" for p in SOURCES},
        embeddings={p: EmbeddingMetadata(file_path=p) for p in SOURCES},
    )


@pytest.fixture
def loader(output_dir) -> FileContextLoader:
    return FileContextLoader(str(output_dir))


@pytest.fixture
def settings(output_dir) -> Settings:
    return Settings(
        openai_api_key="test-key",
        output_dir=str(output_dir),
        max_turns=5,
        embedding_dimensions=8,
    )
