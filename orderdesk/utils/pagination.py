# orderdesk/utils/pagination.py
from __future__ import annotations

import math
from typing import Any, List, Tuple

from sqlalchemy.orm import Query

from orderdesk.schemas.common import Pagination


def paginate(qry: Query, page: int, limit: int) -> Tuple[List[Any], Pagination]:
    """
    Apply offset/limit for a 1-based page and build the pagination meta.
    `qry` should already carry filters and ordering.
    """
    total = qry.order_by(None).count()
    rows = qry.offset((page - 1) * limit).limit(limit).all()
    meta = Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if limit else 0,
    )
    return rows, meta
