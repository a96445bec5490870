"""Runtime settings, read from the environment (and a .env file if present).

Nothing here is global: create_app() and CopyGenerator receive the values
explicitly, so tests can build their own Settings without touching os.environ.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from betfunnels.errors import ConfigurationError
from betfunnels.references import DEFAULT_REFERENCE_MAP, ReferenceMap

ROOT = Path(__file__).parent.parent
DEFAULT_DATA_DIR = ROOT / "data"

GenerationMode = Literal["per_chunk", "single_pass"]
StoreBackend = Literal["json", "supabase"]

_TRUE = {"1", "true", "yes", "on", "sim"}


class GenerationSettings(BaseModel):
    """Policy knobs for CopyGenerator."""

    mode: GenerationMode = "per_chunk"
    day_count: Literal[5, 6] = 6
    carry_forward: bool = False
    review_pass: bool = True
    temperature: float = 0.7
    top_p: float = 0.95
    max_output_tokens: int = 8192
    reference_map: ReferenceMap = Field(default_factory=lambda: dict(DEFAULT_REFERENCE_MAP))


class Settings(BaseModel):
    app_password: str = ""
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    casino_search_limit: int = 12

    template_store: StoreBackend = "json"
    data_dir: Path = DEFAULT_DATA_DIR
    supabase_url: str = ""
    supabase_key: str = ""
    store_timeout: float = 15.0

    llm_provider_url: str = "https://generativelanguage.googleapis.com"
    llm_api_key: str = ""
    llm_format: Literal["gemini", "openai", "koboldcpp", "echo"] = "gemini"
    llm_model: str = "gemini-1.5-flash"
    llm_timeout: float = 60.0

    generation: GenerationSettings = Field(default_factory=GenerationSettings)

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> "Settings":
        """Build settings from environment variables.

        Unset variables keep their defaults. Malformed values raise
        ConfigurationError naming the variable.
        """
        load_dotenv(env_file or ROOT / ".env")
        defaults = cls()
        gen = defaults.generation

        try:
            generation = GenerationSettings(
                mode=_env("GENERATION_MODE", gen.mode),
                day_count=int(_env("DAY_COUNT", gen.day_count)),
                carry_forward=_env_bool("CARRY_FORWARD", gen.carry_forward),
                review_pass=_env_bool("REVIEW_PASS", gen.review_pass),
                temperature=float(_env("LLM_TEMPERATURE", gen.temperature)),
                top_p=float(_env("LLM_TOP_P", gen.top_p)),
                max_output_tokens=int(_env("LLM_MAX_OUTPUT_TOKENS", gen.max_output_tokens)),
            )
            origins = _env("CORS_ORIGINS", "")
            return cls(
                app_password=_env("BETFUNNELS_APP_PASSWORD", ""),
                cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or defaults.cors_origins,
                casino_search_limit=int(_env("CASINO_SEARCH_LIMIT", defaults.casino_search_limit)),
                template_store=_env("TEMPLATE_STORE", defaults.template_store),
                data_dir=Path(_env("DATA_DIR", defaults.data_dir)),
                supabase_url=_env("SUPABASE_URL", ""),
                supabase_key=_env("SUPABASE_SERVICE_ROLE_KEY", ""),
                store_timeout=float(_env("STORE_TIMEOUT", defaults.store_timeout)),
                llm_provider_url=_env("LLM_PROVIDER_URL", defaults.llm_provider_url),
                llm_api_key=_env("LLM_API_KEY", "") or _env("GEMINI_API_KEY", ""),
                llm_format=_env("LLM_FORMAT", defaults.llm_format),
                llm_model=_env("LLM_MODEL", defaults.llm_model),
                llm_timeout=float(_env("LLM_TIMEOUT", defaults.llm_timeout)),
                generation=generation,
            )
        except ValueError as e:
            # pydantic's ValidationError is a ValueError subclass
            raise ConfigurationError(f"Configuração inválida: {e}") from e


def _env(name: str, default) -> str:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return str(default)
    return value.strip()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE
