"""Shared provider plumbing: result type, errors, the adapter protocol and an
httpx-backed base class.

Every adapter normalizes a vendor chat API into ``ChatResult`` and raises
``ProviderError`` (with the raw upstream body attached) on any non-success
response, timeout or transport failure.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from app.models.agent import ChatMessage, ProviderCredentials
from app.models.base import JsonModel
from app.observability.redaction import redact_text

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_TOKENS = 2048


class ChatResult(JsonModel):
    """Normalized provider reply."""

    content: str
    tokens_used: int = 0


class ProviderError(Exception):
    """Upstream LLM call failed.

    Attributes:
        provider: Provider identifier the call was routed to.
        status_code: HTTP status of the last attempt (None for transport errors).
        body: Raw upstream error body (or transport error text).
    """

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body = body


class EmbeddingError(ProviderError):
    """Embedding call failed or returned something that is not a vector."""


class ChatProvider(Protocol):
    """One LLM vendor adapter."""

    name: str

    async def call(
        self,
        credentials: ProviderCredentials,
        model: str,
        messages: list[ChatMessage],
    ) -> ChatResult: ...


def to_wire_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": m.role.value, "content": m.content} for m in messages]


class HttpProvider:
    """Base for adapters that talk JSON over a shared ``httpx.AsyncClient``."""

    name: str = "generic"
    label: str = "Provider"
    error_cls: type[ProviderError] = ProviderError

    def __init__(self, client: httpx.AsyncClient, *, timeout: float | None = None) -> None:
        self._client = client
        self._timeout = timeout

    async def _post(
        self,
        url: str,
        *,
        headers: dict[str, str],
        payload: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """POST JSON, converting timeouts and transport failures to ProviderError."""
        kwargs: dict[str, Any] = {"headers": headers, "json": payload}
        if params:
            kwargs["params"] = params
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        try:
            return await self._client.post(url, **kwargs)
        except httpx.TimeoutException as e:
            raise self.error_cls(
                self.name, f"{self.label} API error: request timed out", body=str(e)
            ) from e
        except httpx.HTTPError as e:
            raise self.error_cls(
                self.name, f"{self.label} API error: {e}", body=str(e)
            ) from e

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        body = response.text
        logger.warning(
            "%s request failed with status %s: %s",
            self.label,
            response.status_code,
            redact_text(body, max_chars=500),
        )
        raise self.error_cls(
            self.name,
            f"{self.label} API error: {body}",
            status_code=response.status_code,
            body=body,
        )

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise self.error_cls(
                self.name,
                f"{self.label} API error: response was not JSON",
                status_code=response.status_code,
                body=response.text,
            ) from e
        if not isinstance(data, dict):
            raise self.error_cls(
                self.name,
                f"{self.label} API error: unexpected response shape",
                status_code=response.status_code,
                body=response.text,
            )
        return data

    def _malformed(self, response: httpx.Response, exc: Exception) -> ProviderError:
        return self.error_cls(
            self.name,
            f"{self.label} API error: malformed response ({exc.__class__.__name__})",
            status_code=response.status_code,
            body=response.text,
        )
