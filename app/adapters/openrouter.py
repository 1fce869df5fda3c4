import httpx
from typing import List, Optional
from app.config import get_settings
from app.adapters.base import EmbeddingAdapter
from app.errors import EmbeddingDimensionError

settings = get_settings()

class OpenRouterEmbedder(EmbeddingAdapter):
    """
    OpenAI-compatible /embeddings endpoint (OpenRouter by default).
    """

    def __init__(self, http: Optional[httpx.AsyncClient] = None):
        self.api_key = settings.OPENROUTER_API_KEY
        self.base_url = settings.EMBEDDING_BASE_URL.rstrip("/")
        self.model = settings.EMBEDDING_MODEL
        self.dimensions = settings.EMBEDDING_DIMENSIONS
        self.http = http or httpx.AsyncClient(timeout=settings.EMBEDDING_TIMEOUT_SECONDS)

    async def embed(self, text: str) -> List[float]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": "https://reindexer.internal",
            "X-Title": "Smart Reindexer",
        }

        payload = {
            "model": self.model,
            "input": text,
            "dimensions": self.dimensions,
        }

        resp = await self.http.post(f"{self.base_url}/embeddings", headers=headers, json=payload)
        resp.raise_for_status()
        data = resp.json()

        vector = [float(x) for x in data["data"][0]["embedding"]]
        if len(vector) != self.dimensions:
            raise EmbeddingDimensionError(
                f"Embedding has {len(vector)} dimensions, index expects {self.dimensions}"
            )
        return vector

    async def aclose(self) -> None:
        await self.http.aclose()
