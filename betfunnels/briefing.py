"""Operator input → per-day briefing text.

A day block lists only the fields the operator filled:

    Tipo de oferta: Deposite, jogue e ganhe
    Jogo: Tigre Sortudo
    Botões: Jogue R$20 | Jogue R$50
    Mensagem: ...

Blank days produce an empty block. With carry-forward enabled, blank days
after the last filled day repeat that day's block and the source day is
recorded in ``borrowed_from``.
"""

import re

from betfunnels.errors import ValidationError
from betfunnels.models import (
    DayBriefing,
    DayInput,
    DayMode,
    FunnelSpec,
    SeasonalBriefing,
)
from betfunnels.references import is_ftd_guarded

OFFER_LABELS = {
    DayMode.DEPOSIT_PLAY: "Deposite, jogue e ganhe",
    DayMode.FREE_TEXT: "Outro tipo de oferta",
}
FTD_DEPOSIT_PLAY_LABEL = "Jogue e ganhe"

# deposite / depositar / depósito / deposit
FORBIDDEN_FTD = re.compile(r"dep[oó]sit", re.IGNORECASE)


def validate_funnel_input(spec: FunnelSpec, day_count: int) -> None:
    """Reject operator input the generator cannot work with."""
    if spec.is_seasonal:
        seasonal = spec.seasonal
        missing = []
        if not seasonal.game_name.strip():
            missing.append("sazonal.gameName")
        if not seasonal.offer_description.strip():
            missing.append("sazonal.offerDescription")
        if missing:
            raise ValidationError(
                "Nome do jogo e descrição da oferta são obrigatórios na Sazonal.",
                missingFields=missing,
            )
        if seasonal.include_upsell_downsell and not (
            seasonal.upsell.strip() or seasonal.downsell.strip()
        ):
            raise ValidationError(
                "Se marcar Upsell/Downsell, preencha pelo menos um deles.",
                missingFields=["sazonal.upsell", "sazonal.downsell"],
            )
        return

    if len(spec.days) > day_count:
        raise ValidationError(
            f"Foram enviados {len(spec.days)} dias, mas o funil tem {day_count}.",
            dayCount=day_count,
        )
    if not any(day.is_active() for day in spec.days):
        raise ValidationError(
            "Preencha pelo menos 1 dia (Deposite, jogue e ganhe / Outro tipo de oferta) antes de gerar."
        )

    if is_ftd_guarded(spec.funnel_type, spec.reactivation_rule):
        offending = []
        for number, day in enumerate(spec.days, start=1):
            for i, text in enumerate(day.buttons, start=1):
                if FORBIDDEN_FTD.search(text):
                    offending.append(f"days.{number}.buttons.{i}")
            if FORBIDDEN_FTD.search(day.free_message):
                offending.append(f"days.{number}.freeMessage")
        if offending:
            raise ValidationError(
                'Palavra proibida em FTD/SEM FTD. Tente: "Coloca…", "Começa com…", "Banca…", "Jogue R$…"',
                forbiddenFields=offending,
            )


def day_block(day: DayInput, ftd_guard: bool = False) -> str:
    """Briefing block for one day, or "" when the day is blank."""
    if not day.is_active():
        return ""
    label = OFFER_LABELS[day.mode]
    if ftd_guard and day.mode == DayMode.DEPOSIT_PLAY:
        label = FTD_DEPOSIT_PLAY_LABEL

    lines = [f"Tipo de oferta: {label}"]
    if day.game_name.strip():
        lines.append(f"Jogo: {day.game_name.strip()}")
    buttons = day.button_texts()
    if buttons:
        lines.append(f"Botões: {' | '.join(buttons)}")
    if day.free_message.strip():
        lines.append(f"Mensagem: {day.free_message.strip()}")
    return "\n".join(lines)


def seasonal_block(spec: FunnelSpec) -> str:
    seasonal = spec.seasonal
    lines = []
    if seasonal.game_name.strip():
        lines.append(f"Jogo: {seasonal.game_name.strip()}")
    if seasonal.offer_description.strip():
        lines.append(f"Oferta: {seasonal.offer_description.strip()}")
    if seasonal.include_upsell_downsell:
        if seasonal.upsell.strip():
            lines.append(f"Upsell: {seasonal.upsell.strip()}")
        if seasonal.downsell.strip():
            lines.append(f"Downsell: {seasonal.downsell.strip()}")
    return "\n".join(lines)


def build_briefing(
    spec: FunnelSpec, day_count: int = 6, carry_forward: bool = False
) -> DayBriefing | SeasonalBriefing:
    """Build the briefing for a request. Pure: same input, same output."""
    if spec.is_seasonal:
        return SeasonalBriefing(text=seasonal_block(spec))

    ftd_guard = is_ftd_guarded(spec.funnel_type, spec.reactivation_rule)
    briefing = DayBriefing()
    for number in range(1, day_count + 1):
        day = spec.days[number - 1] if number <= len(spec.days) else DayInput()
        briefing.days[number] = day_block(day, ftd_guard)

    if carry_forward:
        filled = [n for n, text in briefing.days.items() if text]
        if filled:
            last = max(filled)
            for number in range(last + 1, day_count + 1):
                briefing.days[number] = (
                    f"{briefing.days[last]}\nObs.: mesma oferta do DIA {last}."
                )
                briefing.borrowed_from[number] = last
    return briefing
