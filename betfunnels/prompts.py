"""Handlebars prompt templates for the copy generator.

Four prompts:
  CHUNK_PROMPT       — rewrite one chunk (preamble or one day) of the reference
  SINGLE_PASS_PROMPT — write every day in one call, mimicking the reference
  REVIEW_PROMPT      — strict reviewer: force the draft into the reference structure
  COMPLETION_PROMPT  — fill in only the days missing from a draft

Operator and store text is inserted with triple-stash ({{{x}}}) so HTML, emoji
and merge tags like {{state.user_first_name}} in the references reach the
model untouched.
"""

from collections.abc import Callable
from typing import Any

import pybars

from betfunnels.models import CasinoRecord, FunnelSpec

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_context(
    spec: FunnelSpec,
    casino: CasinoRecord,
    master_guide: str,
    day_count: int,
    ftd_guard: bool,
    **extra: Any,
) -> dict[str, Any]:
    """Variables shared by every prompt, plus prompt-specific ``extra``."""
    ctx: dict[str, Any] = {
        "master_guide": master_guide.strip(),
        "casino": casino.name,
        "tone": casino.tone.strip(),
        "instructions": casino.instructions.strip(),
        "funnel": spec.funnel_type.value,
        "rule": (spec.reactivation_rule or "").strip(),
        "tier": spec.tier.strip(),
        "day_count": day_count,
        "ftd_guard": ftd_guard,
    }
    ctx.update(extra)
    return ctx


_SHARED_HEADER = """\
# GUIA MESTRE DE COPY
{{{master_guide}}}

# CASSINO
Cassino: {{{casino}}}
Funil: {{{funnel}}}{{#if rule}} — régua {{{rule}}}{{/if}}
{{#if tier}}Tier do jogador: {{{tier}}}
{{/if}}
# TOM DE VOZ DO CASSINO
{{{tone}}}
{{#if instructions}}

# INSTRUÇÕES DO CASSINO
{{{instructions}}}
{{/if}}
{{#if ftd_guard}}

# PÚBLICO FTD
Este público nunca depositou. NUNCA use "deposite", "depositar", "depósito" ou
qualquer variação. Prefira "Coloca…", "Começa com…", "Banca…", "Jogue R$…".
{{/if}}
"""

CHUNK_PROMPT = _SHARED_HEADER + """
# TAREFA
Reescreva APENAS o trecho de referência abaixo para este cassino.
- Mantenha exatamente os mesmos rótulos de seção, a mesma ordem e o mesmo padrão de emojis.
- Não crie seções novas e não escreva outros dias.
{{#if day}}
- A primeira linha da resposta deve ser a linha de cabeçalho do DIA {{day}}, igual à referência.
{{/if}}
- Se o briefing tiver menos ofertas ou botões do que a referência, remova os exemplos excedentes.
- Não copie valores, jogos ou CTAs de exemplo da referência que não estejam no briefing.
- Responda somente com o texto final, sem comentários, diagnóstico ou markdown extra.

{{#if briefing}}
# BRIEFING{{#if day}} DO DIA {{day}}{{/if}}
{{{briefing}}}
{{else}}
# BRIEFING
Sem briefing para este trecho. Reescreva de forma neutra, no tom do cassino,
sem inventar jogos, valores, quantidades ou ofertas novas.
{{/if}}

# TRECHO DE REFERÊNCIA
{{{chunk}}}
"""

SINGLE_PASS_PROMPT = _SHARED_HEADER + """
# TAREFA
Escreva a copy completa do funil com {{day_count}} dias, do DIA 1 ao DIA {{day_count}}.
Use a referência abaixo como molde estrutural: copie literalmente a estrutura,
os rótulos de seção, os marcadores de dia e o padrão de emojis, trocando apenas
o conteúdo pelo briefing de cada dia.
- Cada dia começa com o mesmo marcador de dia usado na referência.
- Não escreva nenhum dia além do DIA {{day_count}}.
- Dia sem briefing: reescreva de forma neutra, sem inventar valores ou ofertas.
- Responda somente com a copy final, sem comentários ou diagnóstico.

# BRIEFING POR DIA
{{#each days}}
DIA {{number}}
{{#if briefing}}{{{briefing}}}{{else}}(sem briefing — texto neutro){{/if}}

{{/each}}
{{#if seasonal}}
# BRIEFING SAZONAL
{{{seasonal}}}
{{/if}}

# REFERÊNCIA
{{{reference}}}
"""

REVIEW_PROMPT = _SHARED_HEADER + """
# TAREFA
Você é um revisor estrito. Sua única função é deixar o RASCUNHO com exatamente
a mesma estrutura da REFERÊNCIA: mesmas seções, mesmos rótulos, mesma ordem,
mesmo padrão de emojis e os mesmos marcadores de dia.
- Não mude ofertas, jogos, valores ou botões do rascunho.
- Remova qualquer dia além do DIA {{day_count}}.
- Responda somente com a copy revisada, sem comentários ou diagnóstico.

# REFERÊNCIA
{{{reference}}}

# RASCUNHO
{{{draft}}}
"""

COMPLETION_PROMPT = _SHARED_HEADER + """
# TAREFA
O rascunho abaixo está incompleto: faltam os dias {{{missing}}}.
Devolva a copy completa, do DIA 1 ao DIA {{day_count}}, preservando sem
alterações tudo o que já está correto e escrevendo apenas os dias que faltam,
na mesma estrutura da referência.
- Responda somente com a copy final, sem comentários ou diagnóstico.

# BRIEFING DOS DIAS QUE FALTAM
{{#each days}}
DIA {{number}}
{{#if briefing}}{{{briefing}}}{{else}}(sem briefing — texto neutro){{/if}}

{{/each}}

# REFERÊNCIA
{{{reference}}}

# RASCUNHO
{{{draft}}}
"""
