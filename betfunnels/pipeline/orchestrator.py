"""Copy generator — turns one FunnelSpec into the final copy text.

Request flow:
  1. Validate operator input (active days, seasonal fields, FTD words).
  2. Fetch the master guide and the casino record (fresh on every request).
  3. Resolve reference keys and concatenate their texts; require a tone.
  4. Non-seasonal: require a DIA marker for every day 1..day_count.
  5. Build the day briefing (or the seasonal briefing).
  6. Generate, in one of two modes:
       per_chunk    one model call per template chunk, in template order;
                    restore a dropped DIA header, cut any later day
       single_pass  one call for everything, optional strict review call,
                    one completion call if DIA markers are still missing
  7. Clean every model output and stitch the result.

No model call happens before steps 1–5 succeed. Any failure aborts the whole
request; partial output is never returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from betfunnels.briefing import build_briefing, validate_funnel_input
from betfunnels.casinos import fetch_casino, fetch_master_guide
from betfunnels.config import GenerationSettings
from betfunnels.errors import ModelError, ValidationError
from betfunnels.llm import LLM, GenerationOptions
from betfunnels.models import (
    CasinoRecord,
    DayBriefing,
    FunnelSpec,
    SeasonalBriefing,
    TemplateChunk,
)
from betfunnels.prompts import (
    CHUNK_PROMPT,
    COMPLETION_PROMPT,
    REVIEW_PROMPT,
    SINGLE_PASS_PROMPT,
    build_context,
    render_prompt,
)
from betfunnels.references import is_ftd_guarded, resolve_references
from betfunnels.storage import TemplateStore

from .postprocess import clean_output, collapse_blank_lines, ensure_day_header
from .segments import fit_to_day_count, missing_days, require_days, split_template, truncate_after_day

logger = logging.getLogger(__name__)

REFERENCE_SEPARATOR = "\n\n"
CHUNK_SEPARATOR = "\n\n"


@dataclass
class CopyContext:
    """Everything resolved for one request before the first model call."""

    spec: FunnelSpec
    casino: CasinoRecord
    master_guide: str
    reference_keys: list[str]
    reference: str
    briefing: DayBriefing | SeasonalBriefing
    ftd_guard: bool


def concat_references(casino: CasinoRecord, keys: list[str]) -> str:
    """Join the casino's reference texts for ``keys`` in order.

    Raises ValidationError naming every key with no text.
    """
    texts = {k: (casino.references.get(k) or "") for k in keys}
    missing = [k for k in keys if not texts[k].strip()]
    if missing:
        raise ValidationError(
            "Referência não configurada para este cassino/funil.",
            missingRefKeys=missing,
            matchedCasino=casino.name,
            refDebug={
                k: {"length": len(texts[k]), "trimmedLength": len(texts[k].strip())}
                for k in keys
            },
        )
    return REFERENCE_SEPARATOR.join(texts[k].strip("\n") for k in keys)


class CopyGenerator:
    """Stateless per request; safe to share between requests."""

    def __init__(self, store: TemplateStore, llm: LLM, settings: GenerationSettings) -> None:
        self._store = store
        self._llm = llm
        self._settings = settings
        self._options = GenerationOptions(
            temperature=settings.temperature,
            top_p=settings.top_p,
            max_output_tokens=settings.max_output_tokens,
        )

    @property
    def expected_days(self) -> list[int]:
        return list(range(1, self._settings.day_count + 1))

    async def prepare(self, spec: FunnelSpec) -> CopyContext:
        """Resolve and validate everything; no model calls."""
        day_count = self._settings.day_count
        validate_funnel_input(spec, day_count)

        master_guide = await fetch_master_guide(self._store)
        casino = await fetch_casino(self._store, spec.casino)
        if not casino.tone.strip():
            raise ValidationError(
                "Tom de voz não configurado para este cassino.",
                casino=spec.casino,
                matchedCasino=casino.name,
            )

        keys = resolve_references(
            spec.funnel_type,
            spec.reactivation_rule,
            available=casino.references,
            reference_map=self._settings.reference_map,
        )
        reference = concat_references(casino, keys)
        if not spec.is_seasonal:
            try:
                require_days(reference, self.expected_days)
            except ValidationError as e:
                e.details.update(refKeys=keys, matchedCasino=casino.name)
                raise

        return CopyContext(
            spec=spec,
            casino=casino,
            master_guide=master_guide,
            reference_keys=keys,
            reference=reference,
            briefing=build_briefing(spec, day_count, self._settings.carry_forward),
            ftd_guard=is_ftd_guarded(spec.funnel_type, spec.reactivation_rule),
        )

    async def generate(self, spec: FunnelSpec) -> str:
        ctx = await self.prepare(spec)
        logger.info(
            "Generating copy casino=%s funnel=%s refs=%s mode=%s",
            ctx.casino.name, spec.funnel_type.value, ",".join(ctx.reference_keys),
            self._settings.mode,
        )
        if self._settings.mode == "single_pass":
            return await self._single_pass(ctx)
        return await self._per_chunk(ctx)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _context(self, ctx: CopyContext, **extra) -> dict:
        return build_context(
            ctx.spec, ctx.casino, ctx.master_guide,
            self._settings.day_count, ctx.ftd_guard, **extra,
        )

    def _briefing_for(self, ctx: CopyContext, chunk: TemplateChunk) -> str:
        if isinstance(ctx.briefing, SeasonalBriefing):
            return ctx.briefing.text
        if chunk.day is None:
            return ctx.briefing.overview()
        return ctx.briefing.for_day(chunk.day)

    def _day_list(self, ctx: CopyContext, days: list[int]) -> list[dict]:
        if isinstance(ctx.briefing, SeasonalBriefing):
            return []
        return [{"number": d, "briefing": ctx.briefing.for_day(d)} for d in days]

    async def _call(self, stage: str, prompt: str) -> str:
        raw = await self._llm(stage, prompt, self._options)
        text = clean_output(raw)
        if not text:
            raise ModelError("O modelo retornou apenas comentários, sem copy.", stage=stage)
        return text

    # ------------------------------------------------------------------
    # Per-chunk mode
    # ------------------------------------------------------------------

    async def _per_chunk(self, ctx: CopyContext) -> str:
        day_count = self._settings.day_count
        seasonal = ctx.spec.is_seasonal
        if seasonal:
            # Seasonal references carry no day structure; any "Dia N" is copy.
            chunks = [TemplateChunk(text=ctx.reference)] if ctx.reference.strip() else []
        else:
            chunks, dropped = fit_to_day_count(split_template(ctx.reference), day_count)
            if dropped:
                logger.warning("Dropping reference chunks for DIA %s (funnel has %s days)", dropped, day_count)
            if chunks and chunks[0].day is None and not chunks[0].text.strip():
                chunks = chunks[1:]

        total = len(chunks)
        outputs: list[str] = []
        for index, chunk in enumerate(chunks, start=1):
            prompt = render_prompt(CHUNK_PROMPT, self._context(
                ctx,
                day=chunk.day,
                briefing=self._briefing_for(ctx, chunk),
                chunk=chunk.text.strip("\n"),
            ))
            try:
                text = await self._call(f"chunk {index}/{total}", prompt)
            except ModelError as e:
                logger.error("Model failed on chunk %d/%d: %s", index, total, e.message)
                raise ModelError(
                    "Falha ao gerar a copy com o modelo. Tente novamente.",
                    chunk=index,
                    totalChunks=total,
                    day=chunk.day,
                    cause=e.message,
                ) from e

            if chunk.day is not None:
                text = ensure_day_header(text, chunk)
                text = truncate_after_day(text, chunk.day, day_count)
            elif not seasonal:
                text = truncate_after_day(text, 0, day_count)
                if not text:
                    raise ModelError(
                        "Falha ao gerar a copy com o modelo. Tente novamente.",
                        chunk=index,
                        totalChunks=total,
                        day=None,
                        cause="O modelo retornou apenas dias, sem a introdução.",
                    )
            outputs.append(text)

        return collapse_blank_lines(CHUNK_SEPARATOR.join(outputs)).strip()

    # ------------------------------------------------------------------
    # Single-pass mode
    # ------------------------------------------------------------------

    async def _single_pass(self, ctx: CopyContext) -> str:
        day_count = self._settings.day_count
        seasonal = ctx.briefing.text if isinstance(ctx.briefing, SeasonalBriefing) else ""

        try:
            draft = await self._call("single-pass", render_prompt(SINGLE_PASS_PROMPT, self._context(
                ctx,
                days=self._day_list(ctx, self.expected_days),
                seasonal=seasonal,
                reference=ctx.reference,
            )))

            if self._settings.review_pass:
                draft = await self._call("review", render_prompt(REVIEW_PROMPT, self._context(
                    ctx, reference=ctx.reference, draft=draft,
                )))

            if ctx.spec.is_seasonal:
                return draft

            draft = truncate_after_day(draft, day_count, day_count)
            missing = missing_days(draft, self.expected_days)
            if missing:
                logger.warning("Draft is missing DIA %s, asking for completion", missing)
                draft = await self._call("completion", render_prompt(COMPLETION_PROMPT, self._context(
                    ctx,
                    missing=", ".join(str(d) for d in missing),
                    days=self._day_list(ctx, missing),
                    reference=ctx.reference,
                    draft=draft,
                )))
                draft = truncate_after_day(draft, day_count, day_count)
        except ModelError as e:
            logger.error("Model failed in single-pass generation: %s", e.message)
            raise ModelError(
                "Falha ao gerar a copy com o modelo. Tente novamente.",
                cause=e.message,
            ) from e

        still_missing = missing_days(draft, self.expected_days)
        if still_missing:
            raise ModelError(
                "O modelo não gerou todos os dias do funil.",
                missingDays=still_missing,
                foundDays=sorted(set(self.expected_days) - set(still_missing)),
            )
        return draft
