"""OpenAI-compatible embeddings client."""

from __future__ import annotations

import httpx

from app.services.providers.base import EmbeddingError, HttpProvider


class EmbeddingClient(HttpProvider):
    """``embed()`` raises EmbeddingError; callers treat embeddings as optional."""

    name = "embeddings"
    label = "Embedding"
    error_cls = EmbeddingError

    def __init__(self, client: httpx.AsyncClient, *, timeout: float | None = None) -> None:
        super().__init__(client, timeout=timeout)

    async def embed(
        self,
        api_key: str,
        model: str,
        text: str,
        base_url: str = "https://api.openai.com/v1",
    ) -> list[float]:
        response = await self._post(
            f"{base_url.rstrip('/')}/embeddings",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            payload={"model": model, "input": text},
        )
        self._raise_for_status(response)
        data = self._json(response)

        items = data.get("data")
        vector = None
        if isinstance(items, list) and items and isinstance(items[0], dict):
            vector = items[0].get("embedding")
        if not isinstance(vector, list):
            raise EmbeddingError(
                self.name,
                "Embedding API returned invalid vector",
                status_code=response.status_code,
                body=response.text,
            )
        return [float(v) for v in vector]
