"""LLM client — HTTP connection to a text-generation backend.

The generator injects an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str,
                       options: GenerationOptions | None = None) -> str: ...

`stage` identifies which step is calling (e.g. "chunk 2/7", "review").
Implementations use it for logging only.

Two implementations are provided:

    HttpLLM   — real HTTP client for Gemini, OpenAI-compatible and KoboldCpp
                backends. Selected by provider_format.
    EchoLLM   — returns the prompt back unchanged. Useful for smoke-testing
                the wiring without a model (LLM_FORMAT=echo).

Every failure (connection, timeout, non-2xx status, malformed body, empty
text) is raised as ModelError. There are no automatic retries.
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

import httpx
from pydantic import BaseModel

from betfunnels.errors import ModelError

logger = logging.getLogger(__name__)


class GenerationOptions(BaseModel):
    temperature: float = 0.7
    top_p: float = 0.95
    max_output_tokens: int = 8192


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(
        self, stage: str, prompt: str, options: GenerationOptions | None = None
    ) -> str: ...


# ---------------------------------------------------------------------------
# HttpLLM — connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["gemini", "openai", "koboldcpp"]


class HttpLLM:
    """Async HTTP client for text-generation backends.

    Supported formats:
      "gemini"     — POST /v1beta/models/{model}:generateContent
                     {"contents": [...], "generationConfig": {...}}
                     Response: {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
      "openai"     — POST /v1/completions   {"model": ..., "prompt": ...}
                     Response: {"choices": [{"text": "..."}]}
      "koboldcpp"  — POST /api/v1/generate  {"prompt": ...}
                     Response: {"results": [{"text": "..."}]}

    Args:
        provider_url:    Base URL of the backend.
        api_key:         API key (x-goog-api-key for gemini, Bearer otherwise).
        provider_format: Wire format to use. Defaults to "gemini".
        model:           Model identifier (gemini and openai formats).
        timeout:         HTTP timeout in seconds for each call.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "gemini",
        model: str = "",
        timeout: float = 60.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            if self._format == "gemini":
                headers["x-goog-api-key"] = self._api_key
            else:
                headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, prompt: str, options: GenerationOptions) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "gemini":
            url = f"{self._base_url}/v1beta/models/{self._model}:generateContent"
            return url, {
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": options.temperature,
                    "topP": options.top_p,
                    "maxOutputTokens": options.max_output_tokens,
                },
            }

        if self._format == "openai":
            url = f"{self._base_url}/v1/completions"
            body: dict = {
                "prompt": prompt,
                "temperature": options.temperature,
                "top_p": options.top_p,
                "max_tokens": options.max_output_tokens,
            }
            if self._model:
                body["model"] = self._model
            return url, body

        # koboldcpp
        url = f"{self._base_url}/api/v1/generate"
        return url, {
            "prompt": prompt,
            "temperature": options.temperature,
            "top_p": options.top_p,
            "max_length": options.max_output_tokens,
        }

    def _parse_response(self, data: dict) -> str:
        """Extract the generated text from the response body."""
        if not isinstance(data, dict):
            raise ModelError("Resposta inesperada do modelo.")
        if self._format == "gemini":
            candidates = data.get("candidates")
            if not candidates or not isinstance(candidates[0], dict):
                raise ModelError("Resposta inesperada do Gemini (sem candidates).")
            parts = (candidates[0].get("content") or {}).get("parts") or []
            return "".join(p.get("text", "") for p in parts if isinstance(p, dict))

        if self._format == "openai":
            choices = data.get("choices")
            if not choices or "text" not in choices[0]:
                raise ModelError("Resposta inesperada do backend compatível com OpenAI.")
            return choices[0]["text"]

        results = data.get("results")
        if not results or "text" not in results[0]:
            raise ModelError("Resposta inesperada do backend KoboldCpp.")
        return results[0]["text"]

    async def __call__(
        self, stage: str, prompt: str, options: GenerationOptions | None = None
    ) -> str:
        url, body = self._build_request(prompt, options or GenerationOptions())
        logger.debug("llm call stage=%s url=%s prompt_len=%d", stage, url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise ModelError(f"Não foi possível conectar ao modelo em {self._base_url}.") from e
        except httpx.HTTPStatusError as e:
            raise ModelError(
                f"O modelo retornou HTTP {e.response.status_code}.",
                modelStatus=e.response.status_code,
            ) from e
        except httpx.TimeoutException as e:
            raise ModelError(f"O modelo não respondeu em {self._timeout:g}s.") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ModelError("Resposta do modelo não é JSON válido.") from e

        text = self._parse_response(data)
        if not text or not text.strip():
            raise ModelError("O modelo retornou uma resposta vazia.")
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# EchoLLM — returns the prompt unchanged; useful for wiring smoke tests
# ---------------------------------------------------------------------------

class EchoLLM:
    """Returns the prompt text as-is. No network calls."""

    async def __call__(
        self, stage: str, prompt: str, options: GenerationOptions | None = None
    ) -> str:
        logger.debug("EchoLLM stage=%s prompt_len=%d", stage, len(prompt))
        return prompt
