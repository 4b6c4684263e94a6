"""
Helpers shared by the admin reports.

Every report follows the same shape: a base listing of entities (users,
categories or zones) is merged with per-entity aggregates computed over the
expenses table, entities without expenses get a zero default, a grand total
is taken over the whole filtered set and only then is the result paginated.
"""
import math
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Tuple

from app.config import settings


def clamp_paging(
    page: Optional[int],
    page_size: Optional[int],
    default_page_size: Optional[int] = None,
    max_page_size: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Normalize paging input.
    - page below 1 (or missing) -> 1
    - page_size missing -> default, below 1 -> 1, above the cap -> cap
    """
    default_page_size = default_page_size or settings.DEFAULT_PAGE_SIZE
    max_page_size = max_page_size or settings.MAX_PAGE_SIZE

    page = page if page and page > 0 else 1

    if page_size is None:
        page_size = default_page_size
    page_size = max(1, min(page_size, max_page_size))

    return page, page_size


def merge_with_aggregates(
    entities: Iterable[Any],
    aggregates: Dict[Hashable, Dict[str, Any]],
    key: Callable[[Any], Hashable],
    default: Dict[str, Any],
    build_row: Callable[[Any, Dict[str, Any]], Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Attach an aggregate to each entity, keeping the entity order.

    Entities missing from `aggregates` receive a copy of `default`, so an
    entity with no activity still produces exactly one row.
    """
    merged = []
    for entity in entities:
        values = aggregates.get(key(entity))
        if values is None:
            values = dict(default)
        merged.append(build_row(entity, values))
    return merged


def grand_total(rows: Iterable[Dict[str, Any]], field: str) -> float:
    return sum((row[field] or 0) for row in rows)


def paginate(rows: List[Any], page: int, page_size: int) -> Tuple[List[Any], int]:
    """Return the requested 1-indexed slice and the page count."""
    total_pages = math.ceil(len(rows) / page_size)
    start = (page - 1) * page_size
    return rows[start:start + page_size], total_pages


def aggregate_map(rows: Iterable[Any], key_field: str, fields: Dict[str, Any]) -> Dict[Hashable, Dict[str, Any]]:
    """
    Turn GROUP BY result rows into {key: {field: value}}.

    `fields` maps output names to the default used when the database
    returns NULL for that aggregate.
    """
    result = {}
    for row in rows:
        mapping = row._mapping
        result[mapping[key_field]] = {
            name: (mapping[name] if mapping[name] is not None else fallback)
            for name, fallback in fields.items()
        }
    return result
