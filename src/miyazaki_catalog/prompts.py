"""
Prompt text used as the embedding document for a work.
"""

from __future__ import annotations


TYPE_LABEL = "Тип"
SYNOPSIS_LABEL = "Описание"


def build_prompt(
    *,
    title_ru: str | None = None,
    title_en: str | None = None,
    synopsis: str | None = None,
    work_type: str | None = None,
) -> str:
    """Join the non-empty work fields, one per line.

    Order is fixed: primary title, secondary title, type, synopsis. The
    result must stay identical between write time and backfill time.
    """
    lines = [
        title_ru or "",
        title_en or "",
        f"{TYPE_LABEL}: {work_type}" if work_type else "",
        f"{SYNOPSIS_LABEL}: {synopsis}" if synopsis else "",
    ]
    return "\n".join(line for line in lines if line)
