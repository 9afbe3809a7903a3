import math
from typing import Any

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25
MAX_LIMIT = 100


def _coerce_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return int(stripped)
        except ValueError:
            return None
    return None


def validate_pagination_params(page: Any = None, limit: Any = None) -> tuple[int, int]:
    """Clamp raw page/limit input; never rejects.

    Absent, unparsable or zero values fall back to the defaults, negatives clamp
    to 1 and limits above ``MAX_LIMIT`` clamp to ``MAX_LIMIT``.
    """
    parsed_page = _coerce_int(page) or DEFAULT_PAGE
    parsed_limit = _coerce_int(limit) or DEFAULT_LIMIT
    return max(1, parsed_page), min(MAX_LIMIT, max(1, parsed_limit))


def build_pagination_response(total: int, page: int, limit: int) -> dict[str, int]:
    total = max(0, int(total))
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
    }
