"""
config.py
-----------
Typed configuration loader for environment variables, pathing, and agent limits.
This centralizes settings so the app layer can resolve them once and thread them
into every collaborator explicitly.
"""
from __future__ import annotations
import os
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


class Settings(BaseModel):
    openai_api_key: str = Field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    default_model: str = Field(default_factory=lambda: os.getenv("ASSISTANT_MODEL", "gpt-4o-mini"))
    embedding_model: str = Field(default_factory=lambda: os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"))
    embedding_dimensions: int = Field(default_factory=lambda: _env_int("EMBEDDING_DIMENSIONS", 1536))
    output_dir: str = Field(default_factory=lambda: os.getenv("OUTPUT_DIR", "./data/output"))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Agent loop bounds. The summary caps bound prompt growth as the summary set grows.
    max_turns: int = Field(default_factory=lambda: max(1, _env_int("AGENT_MAX_TURNS", 5)))
    architect_summary_cap: int = Field(default_factory=lambda: _env_int("ARCHITECT_SUMMARY_CAP", 30))
    generation_summary_cap: int = Field(default_factory=lambda: _env_int("GENERATION_SUMMARY_CAP", 10))
    semantic_top_n: int = Field(default_factory=lambda: _env_int("SEMANTIC_TOP_N", 5))
    search_more_top_n: int = Field(default_factory=lambda: _env_int("SEARCH_MORE_TOP_N", 10))
    # 0 keeps the initial search purely semantic; >0 also runs a keyword search
    # with the analysis keywords and feeds those hits to the consolidator.
    initial_keyword_top_n: int = Field(default_factory=lambda: _env_int("INITIAL_KEYWORD_TOP_N", 0))
    history_window: int = Field(default_factory=lambda: _env_int("HISTORY_WINDOW", 6))

    @property
    def vectors_dir(self) -> str:
        return str(Path(self.output_dir) / "vectors")

    def ensure_dirs(self) -> None:
        Path(self.output_dir).mkdir(parents=True, exist_ok=True)
        Path(self.vectors_dir).mkdir(parents=True, exist_ok=True)

settings = Settings()
settings.ensure_dirs()
