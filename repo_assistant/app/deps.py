from __future__ import annotations
from functools import lru_cache
from ..config import Settings, settings
from ..graph.file_context import FileContextLoader
from ..graph.graph import AgenticTurnHandler
from ..graph.nodes import AgentServices
from ..services.embeddings import EmbeddingService
from ..services.keyword_index import KeywordIndex
from ..services.llm import LLMService
from ..services.vector_store import SummaryVectorIndex
from ..store import ProjectStore, QueryStore


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return settings

@lru_cache(maxsize=1)
def get_project_store() -> ProjectStore:
    return ProjectStore(get_settings().output_dir)

@lru_cache(maxsize=1)
def get_query_store() -> QueryStore:
    return QueryStore(get_settings().output_dir)

@lru_cache(maxsize=1)
def get_services() -> AgentServices:
    cfg = get_settings()
    embedder = EmbeddingService(cfg.openai_api_key, cfg.embedding_model, cfg.embedding_dimensions)
    return AgentServices(
        llm=LLMService(cfg.openai_api_key, cfg.default_model),
        embedder=embedder,
        vectors=SummaryVectorIndex(cfg.vectors_dir, embedder.client()),
        keywords=KeywordIndex(),
        loader=FileContextLoader(cfg.output_dir),
    )

@lru_cache(maxsize=1)
def get_handler() -> AgenticTurnHandler:
    return AgenticTurnHandler(get_services(), get_query_store(), get_settings())
