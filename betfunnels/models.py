"""Core domain models.

Request payloads arrive in the camelCase shape the web form posts; every model
accepts both the camelCase alias and the snake_case field name. Pydantic is
used for validation and serialisation at every data boundary.
"""

from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_BUTTONS = 5


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FunnelType(str, Enum):
    ACTIVATION_FTD = "Ativação FTD"
    ACTIVATION_STD_PLUS = "Ativação STD / TTD / 4TD+"
    REACTIVATION = "Reativação"
    SEASONAL = "Sazonal"


class DayMode(str, Enum):
    DEPOSIT_PLAY = "A"  # "Deposite, jogue e ganhe"
    FREE_TEXT = "B"     # "Outro tipo de oferta"


class DayInput(_Payload):
    """One day slot of the funnel form."""

    mode: DayMode = DayMode.DEPOSIT_PLAY
    game_name: str = ""
    button_count: int | None = Field(default=None, ge=1, le=MAX_BUTTONS)
    buttons: list[str] = Field(default_factory=list)
    free_message: str = ""

    @field_validator("game_name", "free_message", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("buttons", mode="before")
    @classmethod
    def _button_texts(cls, value):
        # The form posts [{"text": ...}, ...]; plain strings are accepted too.
        if value is None:
            return []
        texts = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("text")
            texts.append("" if item is None else str(item))
        return texts[:MAX_BUTTONS]

    def button_texts(self) -> list[str]:
        """Non-empty, trimmed button texts, limited to button_count when set."""
        buttons = self.buttons
        if self.button_count is not None:
            buttons = buttons[:self.button_count]
        return [b.strip() for b in buttons if b.strip()]

    def is_active(self) -> bool:
        return bool(
            self.game_name.strip()
            or self.free_message.strip()
            or self.button_texts()
        )


class SeasonalInput(_Payload):
    game_name: str = ""
    offer_description: str = ""
    include_upsell_downsell: bool = False
    upsell: str = ""
    downsell: str = ""

    @field_validator("game_name", "offer_description", "upsell", "downsell", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class FunnelSpec(_Payload):
    """Everything the operator filled in for one generation request."""

    casino: str
    funnel_type: FunnelType
    tier: str = ""
    reactivation_rule: str | None = Field(
        default=None,
        validation_alias=AliasChoices("reativacaoRegua", "reactivationRule", "reactivation_rule"),
    )
    days: list[DayInput] = Field(default_factory=list)
    seasonal: SeasonalInput = Field(
        default_factory=SeasonalInput,
        validation_alias=AliasChoices("sazonal", "seasonal"),
    )

    @property
    def is_seasonal(self) -> bool:
        return self.funnel_type == FunnelType.SEASONAL


class CasinoRecord(BaseModel):
    """Per-casino prompt data owned by the template store."""

    name: str
    tone: str = ""
    instructions: str = ""
    references: dict[str, str] = Field(default_factory=dict)


class TemplateChunk(BaseModel):
    """A contiguous slice of a reference template.

    ``day`` is None for the preamble (text before the first day marker).
    """

    day: int | None = None
    text: str

    @property
    def header(self) -> str:
        """First line of the chunk (the day-marker line for day chunks)."""
        return self.text.split("\n", 1)[0]


class DayBriefing(BaseModel):
    days: dict[int, str] = Field(default_factory=dict)
    borrowed_from: dict[int, int] = Field(default_factory=dict)

    def for_day(self, day: int) -> str:
        return self.days.get(day, "")

    def overview(self) -> str:
        """All non-empty day blocks under day headers, in day order."""
        parts = [
            f"DIA {day}\n{text}"
            for day, text in sorted(self.days.items())
            if text
        ]
        return "\n\n".join(parts)


class SeasonalBriefing(BaseModel):
    text: str


class CopyResult(BaseModel):
    copy_all: str = Field(serialization_alias="copyAll")
