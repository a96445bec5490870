"""Template store accessor: master guide and casino lookup with name fallbacks.

Casino matching order:
  1. exact name (store.get_casino)
  2. normalized key over all casinos: fold accents, lowercase, drop every non-alphanumeric
  3. same, with a trailing "bet" stripped from either side ("Ginga-Bet" ↔ "Ginga")

First match wins; ambiguous matches are not distinguished.
"""

import logging
import re
import unicodedata

from betfunnels.errors import ConfigurationError, NotFoundError
from betfunnels.models import CasinoRecord
from betfunnels.storage import TemplateStore

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 12


def normalize_casino_name(name: str) -> str:
    """"Ginga-Bet", "ginga bet" and "GINGABET" all become "gingabet"; "Lótus" becomes "lotus"."""
    text = unicodedata.normalize("NFKD", name or "")
    text = text.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]", "", text.lower())


def name_candidates(name: str) -> list[str]:
    """Normalized keys to try for a name: the key itself, then without "bet"."""
    key = normalize_casino_name(name)
    candidates = [key] if key else []
    if key.endswith("bet") and len(key) > 3:
        candidates.append(key[:-3])
    return candidates


async def fetch_master_guide(store: TemplateStore) -> str:
    guide = await store.get_master_guide()
    if not guide or not guide.strip():
        raise ConfigurationError("Guia mestre (master prompt) não configurado no banco.")
    return guide


async def fetch_casino(store: TemplateStore, name: str) -> CasinoRecord:
    """Find a casino record by exact name, then by normalized name."""
    casino = await store.get_casino(name)
    if casino is not None:
        return casino

    tried = name_candidates(name)
    casinos = await store.list_casinos()
    # An exact normalized key beats a match that needed "bet" stripped.
    for key in tried:
        for record in casinos:
            if normalize_casino_name(record.name) == key:
                logger.info("Casino %r matched stored record %r by normalized name", name, record.name)
                return record
    for record in casinos:
        if set(name_candidates(record.name)) & set(tried):
            logger.info("Casino %r matched stored record %r without the bet suffix", name, record.name)
            return record

    raise NotFoundError(
        "Cassino não encontrado no banco.",
        casino=name,
        triedKeys=tried,
        availableCasinos=[c.name for c in casinos],
    )


async def search_casino_names(
    store: TemplateStore, query: str, limit: int = DEFAULT_SEARCH_LIMIT
) -> list[str]:
    query = (query or "").strip()
    if not query:
        return []
    return await store.search_casino_names(query, limit)
