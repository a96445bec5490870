"""Tests for betfunnels.llm — HttpLLM and EchoLLM."""

import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch

from betfunnels.errors import ModelError
from betfunnels.llm import EchoLLM, GenerationOptions, HttpLLM


# ---------------------------------------------------------------------------
# EchoLLM
# ---------------------------------------------------------------------------

class TestEchoLLM:
    async def test_returns_prompt_unchanged(self) -> None:
        llm = EchoLLM()
        result = await llm("chunk 1/7", "🔹 DIA 1\nOlá")
        assert result == "🔹 DIA 1\nOlá"

    async def test_stage_name_ignored(self) -> None:
        llm = EchoLLM()
        assert await llm("review", "x") == await llm("completion", "x")


def _mock_response(body, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.raise_for_status = MagicMock(
        side_effect=None if status < 400 else httpx.HTTPStatusError(
            "", request=MagicMock(), response=resp
        )
    )
    return resp


def _gemini_body(*texts: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


# ---------------------------------------------------------------------------
# HttpLLM — Gemini format (default)
# ---------------------------------------------------------------------------

class TestHttpLLMGemini:
    @pytest.fixture
    def llm(self) -> HttpLLM:
        return HttpLLM(
            provider_url="https://generativelanguage.googleapis.com/",
            api_key="gem-key",
            model="gemini-1.5-flash",
        )

    async def test_happy_path_joins_parts(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("🔹 DIA 1\n", "Assunto: oi")))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await llm("chunk 2/7", "prompt")
        assert result == "🔹 DIA 1\nAssunto: oi"

    async def test_posts_to_generate_content(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("ok")))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("chunk 1/7", "prompt")
        url = mock_post.call_args[0][0]
        assert url == (
            "https://generativelanguage.googleapis.com"
            "/v1beta/models/gemini-1.5-flash:generateContent"
        )

    async def test_sends_api_key_header(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("ok")))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("chunk 1/7", "prompt")
        headers = mock_post.call_args.kwargs["headers"]
        assert headers["x-goog-api-key"] == "gem-key"
        assert "Authorization" not in headers

    async def test_sends_generation_config(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("ok")))
        options = GenerationOptions(temperature=0.2, top_p=0.8, max_output_tokens=1024)
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("review", "meu prompt", options)
        sent_body = mock_post.call_args.kwargs["json"]
        assert sent_body == {
            "contents": [{"role": "user", "parts": [{"text": "meu prompt"}]}],
            "generationConfig": {"temperature": 0.2, "topP": 0.8, "maxOutputTokens": 1024},
        }

    async def test_default_options(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("ok")))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("review", "prompt")
        config = mock_post.call_args.kwargs["json"]["generationConfig"]
        assert config == {"temperature": 0.7, "topP": 0.95, "maxOutputTokens": 8192}

    async def test_no_candidates_raises_model_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"promptFeedback": {"blockReason": "SAFETY"}}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(ModelError, match="sem candidates"):
                await llm("chunk 1/7", "prompt")

    async def test_whitespace_only_text_raises_model_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(_gemini_body("  \n ")))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(ModelError, match="resposta vazia"):
                await llm("chunk 1/7", "prompt")

    async def test_http_error_raises_model_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({}, status=500))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(ModelError, match="HTTP 500") as exc:
                await llm("chunk 1/7", "prompt")
        assert exc.value.details == {"modelStatus": 500}
        assert exc.value.status_code == 502

    async def test_connect_error_raises_model_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(ModelError, match="conectar"):
                await llm("chunk 1/7", "prompt")

    async def test_timeout_raises_model_error(self) -> None:
        llm = HttpLLM(provider_url="http://localhost:1", timeout=7)
        mock_post = AsyncMock(side_effect=httpx.ReadTimeout("timeout"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(ModelError, match="7s"):
                await llm("chunk 1/7", "prompt")

    async def test_invalid_json_raises_model_error(self, llm: HttpLLM) -> None:
        resp = _mock_response(None)
        resp.json.side_effect = ValueError("not json")
        mock_post = AsyncMock(return_value=resp)
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(ModelError, match="JSON"):
                await llm("chunk 1/7", "prompt")

    async def test_non_object_body_raises_model_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response(["not", "an", "object"]))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(ModelError):
                await llm("chunk 1/7", "prompt")


# ---------------------------------------------------------------------------
# HttpLLM — OpenAI-compatible format
# ---------------------------------------------------------------------------

class TestHttpLLMOpenAI:
    @pytest.fixture
    def llm(self) -> HttpLLM:
        return HttpLLM(
            provider_url="http://localhost:8080",
            api_key="sk-test",
            provider_format="openai",
            model="gpt-copy",
        )

    async def test_happy_path(self, llm: HttpLLM) -> None:
        body = {"choices": [{"text": "🔹 DIA 1\nOi"}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await llm("single-pass", "prompt")
        assert result == "🔹 DIA 1\nOi"

    async def test_request_shape(self, llm: HttpLLM) -> None:
        body = {"choices": [{"text": "ok"}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("single-pass", "my prompt")
        assert mock_post.call_args[0][0] == "http://localhost:8080/v1/completions"
        sent_body = mock_post.call_args.kwargs["json"]
        assert sent_body["prompt"] == "my prompt"
        assert sent_body["model"] == "gpt-copy"
        assert sent_body["max_tokens"] == 8192
        headers = mock_post.call_args.kwargs["headers"]
        assert headers.get("Authorization") == "Bearer sk-test"

    async def test_model_omitted_when_empty(self) -> None:
        llm = HttpLLM(provider_url="http://localhost:8080", provider_format="openai")
        mock_post = AsyncMock(return_value=_mock_response({"choices": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("single-pass", "prompt")
        assert "model" not in mock_post.call_args.kwargs["json"]

    async def test_malformed_response_raises_model_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"choices": []}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(ModelError, match="OpenAI"):
                await llm("single-pass", "prompt")


# ---------------------------------------------------------------------------
# HttpLLM — KoboldCpp format
# ---------------------------------------------------------------------------

class TestHttpLLMKoboldCpp:
    @pytest.fixture
    def llm(self) -> HttpLLM:
        return HttpLLM(provider_url="http://localhost:5001/", provider_format="koboldcpp")

    async def test_happy_path(self, llm: HttpLLM) -> None:
        body = {"results": [{"text": "🔹 DIA 3\nOi"}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await llm("chunk 4/7", "prompt")
        assert result == "🔹 DIA 3\nOi"

    async def test_posts_to_correct_url(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"results": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("chunk 1/7", "prompt")
        assert mock_post.call_args[0][0] == "http://localhost:5001/api/v1/generate"
        assert mock_post.call_args.kwargs["json"]["max_length"] == 8192

    async def test_no_auth_header_when_no_api_key(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"results": [{"text": "ok"}]}))
        with patch("httpx.AsyncClient.post", mock_post):
            await llm("chunk 1/7", "prompt")
        headers = mock_post.call_args.kwargs["headers"]
        assert "Authorization" not in headers
        assert "x-goog-api-key" not in headers

    async def test_malformed_response_raises_model_error(self, llm: HttpLLM) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"unexpected": "format"}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(ModelError, match="KoboldCpp"):
                await llm("chunk 1/7", "prompt")
