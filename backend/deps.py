"""Wiring helpers: build the store and LLM from settings, guard endpoints."""

import logging

from fastapi import Header, Request

from betfunnels.config import Settings
from betfunnels.errors import AuthError, ConfigurationError
from betfunnels.llm import LLM, EchoLLM, HttpLLM
from betfunnels.pipeline import CopyGenerator
from betfunnels.storage import JsonTemplateStore, SupabaseTemplateStore, TemplateStore

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> TemplateStore:
    if settings.template_store == "supabase":
        return SupabaseTemplateStore(
            settings.supabase_url, settings.supabase_key, timeout=settings.store_timeout
        )
    return JsonTemplateStore(settings.data_dir)


def build_llm(settings: Settings) -> LLM:
    if settings.llm_format == "echo":
        return EchoLLM()
    return HttpLLM(
        settings.llm_provider_url,
        api_key=settings.llm_api_key,
        provider_format=settings.llm_format,
        model=settings.llm_model,
        timeout=settings.llm_timeout,
    )


def check_password(settings: Settings, password: str | None) -> None:
    """Exact comparison against the shared app password."""
    if not settings.app_password:
        raise ConfigurationError("Senha não configurada.")
    if password != settings.app_password:
        logger.warning("Rejected request with an invalid app password")
        raise AuthError("Senha inválida.")


async def require_password(
    request: Request, x_app_password: str | None = Header(default=None)
) -> None:
    check_password(request.app.state.settings, x_app_password)


def get_generator(request: Request) -> CopyGenerator:
    state = request.app.state
    return CopyGenerator(state.store, state.llm, state.settings.generation)
