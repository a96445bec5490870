"""Template store backends.

A template store holds the master style guide and one record per casino
(tone, instructions, reference texts keyed by ref_* names). The core only
reads from it, through the async TemplateStore protocol:

    get_master_guide()                 -> str ("" when unset)
    get_casino(name)                   -> CasinoRecord | None  (exact name)
    list_casinos()                     -> list[CasinoRecord]
    search_casino_names(query, limit)  -> list[str]  (case-insensitive, A→Z)

Two implementations:

    JsonTemplateStore      — flat JSON files, used for development, demo data
                             and tests. Writable.
    SupabaseTemplateStore  — PostgREST tables of the production database.

JSON layout:

    {base}/
      master.json            ← {"guide": "..."}
      casinos/
        {slug}.json          ← CasinoRecord
"""

from __future__ import annotations

import json
import logging
import re
import unicodedata
from pathlib import Path
from typing import Any, Protocol

import httpx

from betfunnels.errors import ConfigurationError, StoreError
from betfunnels.models import CasinoRecord

logger = logging.getLogger(__name__)


def slugify(title: str) -> str:
    """Convert a casino name to a filesystem-safe slug.

    "Ginga Bet" → "ginga-bet"
    """
    text = unicodedata.normalize("NFKD", title)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    text = text.strip("-")
    return text or "untitled"


class TemplateStore(Protocol):
    async def get_master_guide(self) -> str: ...

    async def get_casino(self, name: str) -> CasinoRecord | None: ...

    async def list_casinos(self) -> list[CasinoRecord]: ...

    async def search_casino_names(self, query: str, limit: int) -> list[str]: ...


def _search(names: list[str], query: str, limit: int) -> list[str]:
    needle = query.strip().lower()
    if not needle:
        return []
    hits = [n for n in names if needle in n.lower()]
    return sorted(hits, key=str.lower)[:limit]


# ---------------------------------------------------------------------------
# JsonTemplateStore
# ---------------------------------------------------------------------------

class JsonTemplateStore:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._casino_root = base_path / "casinos"
        self._casino_root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    @property
    def casino_dir(self) -> Path:
        return self._casino_root

    def _master_file(self) -> Path:
        return self._base / "master.json"

    def _casino_file(self, name: str) -> Path:
        return self._casino_root / f"{slugify(name)}.json"

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text(encoding="utf-8"))

    def _write_json(self, path: Path, data: Any) -> None:
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    # ------------------------------------------------------------------
    # Master guide
    # ------------------------------------------------------------------

    async def get_master_guide(self) -> str:
        path = self._master_file()
        if not path.exists():
            return ""
        return self._read_json(path).get("guide", "")

    def save_master_guide(self, guide: str) -> None:
        self._write_json(self._master_file(), {"guide": guide})

    # ------------------------------------------------------------------
    # Casinos
    # ------------------------------------------------------------------

    def save_casino(self, casino: CasinoRecord) -> None:
        """Upsert a casino record by slug of its name."""
        self._write_json(self._casino_file(casino.name), casino.model_dump())

    def _load_all(self) -> list[CasinoRecord]:
        return [
            CasinoRecord.model_validate(self._read_json(path))
            for path in sorted(self._casino_root.glob("*.json"))
        ]

    async def get_casino(self, name: str) -> CasinoRecord | None:
        path = self._casino_file(name)
        if not path.exists():
            return None
        casino = CasinoRecord.model_validate(self._read_json(path))
        # The slug is lossy; only an identical stored name is an exact hit
        return casino if casino.name == name else None

    async def list_casinos(self) -> list[CasinoRecord]:
        return sorted(self._load_all(), key=lambda c: c.name.lower())

    async def search_casino_names(self, query: str, limit: int) -> list[str]:
        return _search([c.name for c in self._load_all()], query, limit)


# ---------------------------------------------------------------------------
# SupabaseTemplateStore
# ---------------------------------------------------------------------------

class SupabaseTemplateStore:
    """Read-only access to the production tables through PostgREST.

    Tables (column names are constructor arguments):
      casino_prompts  nome_casino, tom_de_voz, instrucoes, ref_* columns
      master_prompt   conteudo

    Missing credentials are reported per request as ConfigurationError, so the
    app still starts and the operator sees what to fix.
    """

    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = 15.0,
        casino_table: str = "casino_prompts",
        name_column: str = "nome_casino",
        tone_column: str = "tom_de_voz",
        instructions_column: str = "instrucoes",
        master_table: str = "master_prompt",
        master_column: str = "conteudo",
    ) -> None:
        self._url = url.rstrip("/")
        self._key = key
        self._timeout = timeout
        self._casino_table = casino_table
        self._name_column = name_column
        self._tone_column = tone_column
        self._instructions_column = instructions_column
        self._master_table = master_table
        self._master_column = master_column

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._key,
            "Authorization": f"Bearer {self._key}",
            "Accept": "application/json",
        }

    async def _select(self, table: str, params: dict[str, str]) -> list[dict]:
        if not self._url or not self._key:
            raise ConfigurationError(
                "Configuração do servidor ausente (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)."
            )
        url = f"{self._url}/rest/v1/{table}"
        logger.debug("store select table=%s params=%s", table, params)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(url, params=params, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise StoreError("Não foi possível conectar ao banco de templates.") from e
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"O banco de templates retornou HTTP {e.response.status_code}.",
                table=table,
            ) from e
        except httpx.TimeoutException as e:
            raise StoreError("O banco de templates não respondeu a tempo.") from e

        rows = resp.json()
        if not isinstance(rows, list):
            raise StoreError("Resposta inesperada do banco de templates.", table=table)
        return rows

    def _to_record(self, row: dict) -> CasinoRecord:
        return CasinoRecord(
            name=str(row.get(self._name_column) or "").strip(),
            tone=row.get(self._tone_column) or "",
            instructions=row.get(self._instructions_column) or "",
            references={
                k: v for k, v in row.items()
                if k.startswith("ref_") and isinstance(v, str)
            },
        )

    async def get_master_guide(self) -> str:
        rows = await self._select(
            self._master_table, {"select": self._master_column, "limit": "1"}
        )
        if not rows:
            return ""
        return rows[0].get(self._master_column) or ""

    async def get_casino(self, name: str) -> CasinoRecord | None:
        rows = await self._select(self._casino_table, {
            "select": "*",
            self._name_column: f"eq.{name}",
            "limit": "1",
        })
        return self._to_record(rows[0]) if rows else None

    async def list_casinos(self) -> list[CasinoRecord]:
        rows = await self._select(self._casino_table, {
            "select": "*",
            "order": f"{self._name_column}.asc",
        })
        return [self._to_record(r) for r in rows]

    async def search_casino_names(self, query: str, limit: int) -> list[str]:
        # PostgREST reserves these characters inside filter values
        needle = re.sub(r"[*%,()\"]", "", query).strip()
        if not needle:
            return []
        rows = await self._select(self._casino_table, {
            "select": self._name_column,
            self._name_column: f"ilike.*{needle}*",
            "order": f"{self._name_column}.asc",
            "limit": str(limit),
        })
        names = [str(r.get(self._name_column) or "").strip() for r in rows]
        return [n for n in names if n]
