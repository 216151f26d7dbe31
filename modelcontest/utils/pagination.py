import math
from typing import Any, List


def paginate(query, page: int, limit: int) -> dict:
    """Apply offset/limit to a query and describe the page"""
    total = query.order_by(None).count()
    items: List[Any] = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "items": items,
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
