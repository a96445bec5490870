"""Cleanup applied to every model output before it is stitched."""

import logging
import re

from betfunnels.models import TemplateChunk

from .segments import marker_day

logger = logging.getLogger(__name__)

# "Diagnóstico: ...", "**Copy final:**", "> Revisão: ...", "Nota: ..." are commentary, not copy
META_LINE_RE = re.compile(
    r"^[ \t]*(?:[*_#>]+[ \t]*)?"
    r"(?:diagn[oó]stico|diagnosis|copy final|final copy|vers[aã]o final|"
    r"revis[aã]o|review|an[aá]lise|analysis|observa[cç](?:[aã]o|[oõ]es)|coment[aá]rios?|notas?|note)"
    r"[ \t]*[*_]*[ \t]*:",
    re.IGNORECASE,
)
FENCE_RE = re.compile(r"^[ \t]*```")
BLANK_RUN_RE = re.compile(r"\n(?:[ \t]*\n){3,}")


def is_meta_line(line: str) -> bool:
    return bool(META_LINE_RE.match(line) or FENCE_RE.match(line))


def collapse_blank_lines(text: str) -> str:
    """Runs of three or more blank lines become a single blank line."""
    return BLANK_RUN_RE.sub("\n\n", text)


def clean_output(text: str) -> str:
    lines = text.replace("\r\n", "\n").split("\n")
    kept = [line for line in lines if not is_meta_line(line)]
    if len(kept) != len(lines):
        logger.debug("Dropped %d meta line(s) from model output", len(lines) - len(kept))
    return collapse_blank_lines("\n".join(kept)).strip()


def ensure_day_header(text: str, chunk: TemplateChunk) -> str:
    """Prepend the chunk's marker line when the output does not start with it."""
    first = next((line for line in text.split("\n") if line.strip()), "")
    if marker_day(first) == chunk.day:
        return text
    logger.warning("Model dropped the DIA %s header, restoring it", chunk.day)
    return f"{chunk.header.rstrip()}\n{text}"
