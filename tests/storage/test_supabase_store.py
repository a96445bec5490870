"""Tests for SupabaseTemplateStore — PostgREST queries over mocked httpx."""

import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch

from betfunnels.errors import ConfigurationError, StoreError
from betfunnels.storage import SupabaseTemplateStore

ROW = {
    "id": 7,
    "nome_casino": " Ginga ",
    "tom_de_voz": "Descontraído.",
    "instrucoes": None,
    "ref_ativacao_ftd": "🔹 DIA 1\n...",
    "ref_sazonal": None,
    "created_at": "2025-01-01",
}


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


@pytest.fixture
def store() -> SupabaseTemplateStore:
    return SupabaseTemplateStore("https://db.example/", "service-key", timeout=3)


async def test_get_casino_exact_filter(store):
    mock_get = AsyncMock(return_value=_mock_response([ROW]))
    with patch("httpx.AsyncClient.get", mock_get):
        casino = await store.get_casino("Ginga")

    assert mock_get.call_args[0][0] == "https://db.example/rest/v1/casino_prompts"
    params = mock_get.call_args.kwargs["params"]
    assert params["nome_casino"] == "eq.Ginga"
    assert params["limit"] == "1"
    headers = mock_get.call_args.kwargs["headers"]
    assert headers["apikey"] == "service-key"
    assert headers["Authorization"] == "Bearer service-key"

    assert casino.name == "Ginga"
    assert casino.tone == "Descontraído."
    assert casino.instructions == ""
    assert casino.references == {"ref_ativacao_ftd": "🔹 DIA 1\n..."}


async def test_get_casino_miss(store):
    with patch("httpx.AsyncClient.get", AsyncMock(return_value=_mock_response([]))):
        assert await store.get_casino("Nada") is None


async def test_list_casinos_ordered(store):
    mock_get = AsyncMock(return_value=_mock_response([ROW, {**ROW, "nome_casino": "Lótus"}]))
    with patch("httpx.AsyncClient.get", mock_get):
        casinos = await store.list_casinos()
    assert [c.name for c in casinos] == ["Ginga", "Lótus"]
    assert mock_get.call_args.kwargs["params"]["order"] == "nome_casino.asc"


async def test_search_uses_ilike(store):
    mock_get = AsyncMock(return_value=_mock_response([{"nome_casino": "Ginga"}, {"nome_casino": ""}]))
    with patch("httpx.AsyncClient.get", mock_get):
        names = await store.search_casino_names("gin*", 12)
    assert names == ["Ginga"]
    params = mock_get.call_args.kwargs["params"]
    assert params["nome_casino"] == "ilike.*gin*"
    assert params["select"] == "nome_casino"
    assert params["limit"] == "12"


async def test_search_with_only_reserved_chars_skips_query(store):
    mock_get = AsyncMock()
    with patch("httpx.AsyncClient.get", mock_get):
        assert await store.search_casino_names("%*", 12) == []
    mock_get.assert_not_called()


async def test_master_guide(store):
    mock_get = AsyncMock(return_value=_mock_response([{"conteudo": "Guia"}]))
    with patch("httpx.AsyncClient.get", mock_get):
        assert await store.get_master_guide() == "Guia"
    assert mock_get.call_args[0][0] == "https://db.example/rest/v1/master_prompt"


async def test_master_guide_empty_table(store):
    with patch("httpx.AsyncClient.get", AsyncMock(return_value=_mock_response([]))):
        assert await store.get_master_guide() == ""


async def test_missing_credentials_raise_configuration_error():
    s = SupabaseTemplateStore("", "")
    with pytest.raises(ConfigurationError, match="SUPABASE_URL"):
        await s.get_master_guide()


async def test_http_error_raises_store_error(store):
    with patch("httpx.AsyncClient.get", AsyncMock(return_value=_mock_response({}, status=401))):
        with pytest.raises(StoreError, match="HTTP 401") as exc:
            await store.get_casino("Ginga")
    assert exc.value.details == {"table": "casino_prompts"}
    assert exc.value.status_code == 502


async def test_connect_error_raises_store_error(store):
    with patch("httpx.AsyncClient.get", AsyncMock(side_effect=httpx.ConnectError("refused"))):
        with pytest.raises(StoreError, match="conectar"):
            await store.list_casinos()


async def test_timeout_raises_store_error(store):
    with patch("httpx.AsyncClient.get", AsyncMock(side_effect=httpx.ReadTimeout("slow"))):
        with pytest.raises(StoreError, match="a tempo"):
            await store.list_casinos()


async def test_non_list_body_raises_store_error(store):
    with patch("httpx.AsyncClient.get", AsyncMock(return_value=_mock_response({"message": "?"}))):
        with pytest.raises(StoreError):
            await store.list_casinos()
