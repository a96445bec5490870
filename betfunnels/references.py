"""Funnel classification → reference template keys.

Routes:
  ftd                      Ativação FTD
  std                      Ativação STD / TTD / 4TD+
  reativacao:<rule>        Reativação, per régua (sem_ftd, sem_deposito, sem_login)
  reativacao               Reativação with a missing or unknown régua
  sazonal                  Sazonal (always exactly [ref_sazonal])

Each route maps to an ordered tuple of keys; when a route has several keys the
reference texts are concatenated in that order.
"""

import logging
import re
import unicodedata
from collections.abc import Mapping

from betfunnels.models import FunnelType

logger = logging.getLogger(__name__)

REF_ATIVACAO_FTD = "ref_ativacao_ftd"
REF_ATIVACAO_STD = "ref_ativacao_std"
REF_REATIVACAO_SEM_FTD = "ref_reativacao_sem_ftd"
REF_REATIVACAO_SEM_DEPOSITO = "ref_reativacao_sem_deposito"
REF_REATIVACAO_SEM_LOGIN = "ref_reativacao_sem_login"
REF_SAZONAL = "ref_sazonal"

# Broader keys from the older single-reference-per-funnel schema
REF_ATIVACAO = "ref_ativacao"
REF_REATIVACAO = "ref_reativacao"

REFERENCE_KEYS = (
    REF_ATIVACAO_FTD,
    REF_ATIVACAO_STD,
    REF_REATIVACAO_SEM_FTD,
    REF_REATIVACAO_SEM_DEPOSITO,
    REF_REATIVACAO_SEM_LOGIN,
    REF_SAZONAL,
)

BROADER_KEY = {
    REF_ATIVACAO_FTD: REF_ATIVACAO,
    REF_ATIVACAO_STD: REF_ATIVACAO,
    REF_REATIVACAO_SEM_FTD: REF_REATIVACAO,
    REF_REATIVACAO_SEM_DEPOSITO: REF_REATIVACAO,
    REF_REATIVACAO_SEM_LOGIN: REF_REATIVACAO,
}

ReferenceMap = dict[str, tuple[str, ...]]

DEFAULT_REACTIVATION_ROUTE = "reativacao"

DEFAULT_REFERENCE_MAP: ReferenceMap = {
    "ftd": (REF_ATIVACAO_FTD,),
    "std": (REF_ATIVACAO_STD,),
    "reativacao:sem_ftd": (REF_REATIVACAO_SEM_FTD,),
    "reativacao:sem_deposito": (REF_REATIVACAO_SEM_DEPOSITO,),
    "reativacao:sem_login": (REF_REATIVACAO_SEM_LOGIN,),
    DEFAULT_REACTIVATION_ROUTE: (REF_REATIVACAO_SEM_DEPOSITO,),
    "sazonal": (REF_SAZONAL,),
}


def normalize_rule(rule: str | None) -> str:
    """"Sem Depósito" → "sem_deposito"."""
    if not rule:
        return ""
    text = unicodedata.normalize("NFKD", rule)
    text = text.encode("ascii", "ignore").decode("ascii").lower()
    return re.sub(r"[^a-z0-9]+", "_", text).strip("_")


def _route(funnel_type: FunnelType, rule: str | None, reference_map: Mapping) -> str:
    if funnel_type == FunnelType.ACTIVATION_FTD:
        return "ftd"
    if funnel_type == FunnelType.ACTIVATION_STD_PLUS:
        return "std"
    if funnel_type == FunnelType.SEASONAL:
        return "sazonal"
    route = f"reativacao:{normalize_rule(rule)}"
    if route not in reference_map:
        logger.info("Unknown reactivation rule %r, using default reference", rule)
        return DEFAULT_REACTIVATION_ROUTE
    return route


def _has_text(available: Mapping[str, str], key: str) -> bool:
    return bool((available.get(key) or "").strip())


def resolve_references(
    funnel_type: FunnelType,
    reactivation_rule: str | None = None,
    available: Mapping[str, str] | None = None,
    reference_map: Mapping[str, tuple[str, ...]] | None = None,
) -> list[str]:
    """Return the ordered reference keys for a funnel. Never empty.

    When ``available`` (the casino's references) is given, a specific key with
    no text is swapped for its broader key if that one has text. The specific
    key is kept otherwise, so a later lookup reports it as missing.
    """
    if funnel_type == FunnelType.SEASONAL:
        return [REF_SAZONAL]

    reference_map = reference_map or DEFAULT_REFERENCE_MAP
    keys = list(reference_map.get(_route(funnel_type, reactivation_rule, reference_map), ()))
    if not keys:
        keys = list(DEFAULT_REFERENCE_MAP[_route(funnel_type, reactivation_rule, DEFAULT_REFERENCE_MAP)])

    if available is None:
        return keys

    resolved: list[str] = []
    for key in keys:
        broader = BROADER_KEY.get(key)
        if not _has_text(available, key) and broader and _has_text(available, broader):
            logger.debug("Reference %s empty, falling back to %s", key, broader)
            resolved.append(broader)
        else:
            resolved.append(key)
    return resolved


def is_ftd_guarded(funnel_type: FunnelType, reactivation_rule: str | None = None) -> bool:
    """FTD audiences have never deposited: copy must not ask them to "deposit"."""
    if funnel_type == FunnelType.ACTIVATION_FTD:
        return True
    return funnel_type == FunnelType.REACTIVATION and normalize_rule(reactivation_rule) == "sem_ftd"
