"""
`limit` / `offset` query parameters shared by every listing endpoint.

Unparseable or out-of-range values fall back to the defaults instead of
failing the request; `limit` is capped at `settings.max_page_size`.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Query

from sweetholic.config import settings


@dataclass(frozen=True)
class Page:
    limit: int
    offset: int


def _to_int(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


def get_page(
    limit: Optional[str] = Query(None, description="Page size"),
    offset: Optional[str] = Query(None, description="Rows to skip"),
) -> Page:
    size = _to_int(limit)
    if not size or size < 1:
        size = settings.default_page_size
    skip = _to_int(offset)
    if skip is None or skip < 0:
        skip = 0
    return Page(limit=min(size, settings.max_page_size), offset=skip)
