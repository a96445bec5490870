"""Copy generation pipeline.

One request produces one copy text:
  1. segments      — find DIA markers, split the reference into chunks, check
                     that every day 1..day_count has a marker.
  2. orchestrator  — resolve casino + references, build the briefing, call the
                     model per chunk (default) or once for the whole funnel.
  3. postprocess   — drop commentary lines and code fences, collapse blank
                     runs, restore a missing DIA header.

Generation modes (GENERATION_MODE):
  per_chunk    — preamble + one call per day chunk, stitched with a blank line
  single_pass  — one call, then a strict review call (REVIEW_PASS), then one
                 completion call if days are still missing
"""

from .orchestrator import CopyContext, CopyGenerator, concat_references  # noqa: F401
from .postprocess import clean_output, collapse_blank_lines, ensure_day_header  # noqa: F401
from .segments import (  # noqa: F401
    MARKER_RE,
    extract_day_numbers,
    fit_to_day_count,
    join_chunks,
    marker_day,
    missing_days,
    require_days,
    split_template,
    truncate_after_day,
)
