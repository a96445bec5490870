"""Day-marker parsing for reference templates and model output.

Marker grammar (case-insensitive, anchored at the start of a line or of the
text):

    marker := [blank*] [glyph [blank*]] ["**"] "DIA" [blank*] digit+
    glyph  := 🔹 | 🔸 | 🔷 | 🔶 | • | ▪ | ► | - | *    (optionally followed by U+FE0F)

Examples: "🔹 DIA 1", "🔸DIA2 - Email", "Dia 3", "- DIA 4", "**DIA 5**".

split_template() cuts a template at every marker line. Text before the first
marker is the preamble. Concatenating the chunk texts gives back the input
exactly.
"""

import re
from collections.abc import Iterable

from betfunnels.errors import ValidationError
from betfunnels.models import TemplateChunk

MARKER_GLYPHS = ("🔹", "🔸", "🔷", "🔶", "•", "▪", "►", "-", "*")

MARKER_RE = re.compile(
    r"^[ \t]*(?:(?:" + "|".join(re.escape(g) for g in MARKER_GLYPHS) + r")\ufe0f?[ \t]*)?"
    r"(?:\*\*)?DIA[ \t]*(\d+)",
    re.IGNORECASE | re.MULTILINE,
)


def marker_day(line: str) -> int | None:
    """Day number if ``line`` starts with a day marker, else None."""
    match = MARKER_RE.match(line)
    return int(match.group(1)) if match else None


def extract_day_numbers(template: str) -> list[int]:
    """Distinct day numbers with a marker in ``template``, ascending."""
    return sorted({int(m.group(1)) for m in MARKER_RE.finditer(template or "")})


def split_template(template: str) -> list[TemplateChunk]:
    """Split a template into a preamble chunk (if any) plus one chunk per marker."""
    if not template:
        return []
    matches = list(MARKER_RE.finditer(template))
    if not matches:
        return [TemplateChunk(day=None, text=template)]

    chunks: list[TemplateChunk] = []
    if matches[0].start() > 0:
        chunks.append(TemplateChunk(day=None, text=template[:matches[0].start()]))
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(template)
        chunks.append(TemplateChunk(day=int(match.group(1)), text=template[match.start():end]))
    return chunks


def join_chunks(chunks: Iterable[TemplateChunk]) -> str:
    return "".join(chunk.text for chunk in chunks)


def missing_days(text: str, expected: Iterable[int]) -> list[int]:
    return sorted(set(expected) - set(extract_day_numbers(text)))


def require_days(template: str, expected: Iterable[int]) -> list[int]:
    """Return the days found, or raise ValidationError if any expected day is absent."""
    expected = list(expected)
    found = extract_day_numbers(template)
    missing = sorted(set(expected) - set(found))
    if missing:
        raise ValidationError(
            "O template de referência não tem marcadores para todos os dias.",
            missingDays=missing,
            foundDays=found,
        )
    return found


def _is_day_boundary(day: int, previous: int, day_count: int | None) -> bool:
    # Past day_count only the next day in sequence is a real day; "Dia 25 de
    # dezembro" inside a chunk is copy.
    return day_count is None or day <= day_count or day == previous + 1


def fit_to_day_count(
    chunks: Iterable[TemplateChunk], day_count: int
) -> tuple[list[TemplateChunk], list[int]]:
    """Fit split chunks to a funnel of ``day_count`` days.

    Extra days (``day_count + 1`` onwards, in sequence) are dropped whole. Any
    other marker past ``day_count`` is a content line: its text is appended to
    the chunk before it. Returns the kept chunks and the dropped day numbers.
    """
    kept: list[TemplateChunk] = []
    dropped: list[int] = []
    previous = 0
    dropping = False
    for chunk in chunks:
        if chunk.day is not None and _is_day_boundary(chunk.day, previous, day_count):
            previous = chunk.day
            dropping = chunk.day > day_count
            if dropping:
                dropped.append(chunk.day)
            else:
                kept.append(chunk)
        elif dropping:
            continue
        elif kept:
            kept[-1] = TemplateChunk(day=kept[-1].day, text=kept[-1].text + chunk.text)
        else:
            kept.append(TemplateChunk(day=None, text=chunk.text))
    return kept, dropped


def truncate_after_day(text: str, last_day: int, day_count: int | None = None) -> str:
    """Cut ``text`` at the first marker for a day later than ``last_day``.

    With ``day_count``, markers past it that do not continue from ``last_day``
    are left in place as copy.
    """
    for match in MARKER_RE.finditer(text):
        day = int(match.group(1))
        if day > last_day and _is_day_boundary(day, last_day, day_count):
            return text[:match.start()].rstrip()
    return text
