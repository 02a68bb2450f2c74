from typing import Tuple

from flask import request, abort

MAX_LIMIT = 100


def parse_pagination(default_limit: int = 20, max_limit: int = MAX_LIMIT) -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", str(default_limit)))
        page = max(page, 1)
        limit = max(1, min(limit, max_limit))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")
