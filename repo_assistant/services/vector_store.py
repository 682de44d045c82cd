"""
vector_store.py
---------------
Per-project summary index on top of LangChain's `InMemoryVectorStore`.

Each collection (`project_<name>`) is persisted as one JSON dump under the vectors
directory and loaded lazily on first search. Documents carry the summary as page
content and the source path in `metadata["file_path"]`; the path doubles as the
document id, so re-indexing a file replaces its previous entry.
"""
from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Dict, List, Tuple

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.vectorstores import InMemoryVectorStore
from loguru import logger

from ..errors import CollaboratorError


class SummaryVectorIndex:
    def __init__(self, persist_dir: str, embedding: Embeddings) -> None:
        self.root = Path(persist_dir)
        self.root.mkdir(parents=True, exist_ok=True)
        self.embedding = embedding
        self._stores: Dict[str, InMemoryVectorStore] = {}

    def _path(self, collection_key: str) -> Path:
        return self.root / f"{collection_key}.json"

    def _store(self, collection_key: str, create: bool = False) -> InMemoryVectorStore:
        store = self._stores.get(collection_key)
        if store is not None:
            return store
        p = self._path(collection_key)
        if p.exists():
            try:
                store = InMemoryVectorStore.load(str(p), self.embedding)
            except Exception as e:
                logger.error(f"Loading collection '{collection_key}' from {p} failed: {e}")
                raise CollaboratorError(
                    "vector search", f"collection '{collection_key}' could not be loaded: {e}"
                ) from e
        elif create:
            store = InMemoryVectorStore(self.embedding)
        else:
            raise CollaboratorError("vector search", f"collection '{collection_key}' does not exist")
        self._stores[collection_key] = store
        return store

    async def upsert(self, collection_key: str, path: str, summary: str) -> None:
        store = self._store(collection_key, create=True)
        doc = Document(id=path, page_content=summary, metadata={"file_path": path})
        await store.aadd_documents([doc], ids=[path])

    def save(self, collection_key: str) -> None:
        self._store(collection_key).dump(str(self._path(collection_key)))

    async def similarity_search(
        self, collection_key: str, query_vector: List[float], top_n: int
    ) -> List[Tuple[str, str, float]]:
        logger.debug(f"Searching collection '{collection_key}' (top {top_n})")
        store = self._store(collection_key)
        try:
            results = await asyncio.to_thread(
                store.similarity_search_with_score_by_vector, query_vector, top_n
            )
        except Exception as e:
            logger.error(f"Vector search in '{collection_key}' failed: {e}")
            raise CollaboratorError("vector search", str(e)) from e
        logger.debug(f"Search completed, found {len(results)} results")
        return [
            (str(doc.metadata.get("file_path", doc.id or "")), doc.page_content, float(score))
            for doc, score in results
        ]
