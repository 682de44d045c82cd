"""
embeddings.py
-------------
Query embedding via `langchain_openai.OpenAIEmbeddings`.
"""
from __future__ import annotations
from typing import Dict, List, Optional

from langchain_openai import OpenAIEmbeddings
from loguru import logger

from ..errors import CollaboratorError


class EmbeddingService:
    def __init__(self, api_key: str, model: str, dimensions: int = 1536) -> None:
        self.api_key = api_key
        self.model = model
        self.dimensions = dimensions
        self._clients: Dict[int, OpenAIEmbeddings] = {}

    def client(self, dimensions: Optional[int] = None) -> OpenAIEmbeddings:
        dims = dimensions or self.dimensions
        if dims not in self._clients:
            self._clients[dims] = OpenAIEmbeddings(
                model=self.model, dimensions=dims, api_key=self.api_key or None
            )
        return self._clients[dims]

    async def embed(self, text: str, dimensions: Optional[int] = None) -> List[float]:
        logger.debug(f"Embedding {len(text)} chars with {self.model}")
        try:
            return await self.client(dimensions).aembed_query(text)
        except Exception as e:
            logger.error(f"Embedding request failed: {e}")
            raise CollaboratorError("embedding", str(e)) from e
