# 레시피 목록 쿼리스트링 → RecipeQuery
# 예외를 던지지 않고 (query, errors) 를 돌려준다. errors 가 비어있지 않으면 query 는 None
# → 호출부는 DB 조회 없이 에러 묶음을 그대로 400 으로 반환

from __future__ import annotations
import math
from typing import Dict, List, Optional, Tuple

from coffeetalk.core.config import settings
from coffeetalk.db.ids import as_object_id
from coffeetalk.models.filters import (
    BeansClause,
    MinRatingClause,
    NameClause,
    RecipeQuery,
    ReferenceClause,
)

# 쿼리 파라미터 → (레시피 필드, 에러 라벨)
_REFERENCE_PARAMS = {
    "grinder": ("grinder", "coffee grinder ID"),
    "method": ("brewing_method", "brewing method ID"),
    "brewer": ("brewer", "coffee brewer ID"),
}

def _parse_number(raw: str) -> Optional[float]:
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value

def _parse_int(raw: Optional[str], default: int) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return None

def build_recipe_query(
    name: Optional[str] = None,
    beans: Optional[str] = None,
    grinder: Optional[str] = None,
    method: Optional[str] = None,
    brewer: Optional[str] = None,
    rating: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort: Optional[str] = None,
) -> Tuple[Optional[RecipeQuery], Dict[str, str]]:
    errors: Dict[str, str] = {}
    clauses: List = []

    if name:
        clauses.append(NameClause(text=name))

    if beans:
        raw_ids = [b.strip() for b in beans.split(",") if b.strip()]
        bean_ids = [as_object_id(b) for b in raw_ids]
        if any(b is None for b in bean_ids):
            errors["beans"] = "Invalid coffee bean ID."
        elif bean_ids:
            clauses.append(BeansClause(ids=tuple(bean_ids)))

    refs = {"grinder": grinder, "method": method, "brewer": brewer}
    for param, raw in refs.items():
        if not raw:
            continue
        field, label = _REFERENCE_PARAMS[param]
        oid = as_object_id(raw.strip())
        if oid is None:
            errors[param] = f"Invalid {label}."
        else:
            clauses.append(ReferenceClause(field=field, id=oid))

    # 평균 평점 하한
    if rating is not None and rating.strip() != "":
        value = _parse_number(rating)
        if value is None:
            errors["rating"] = "Rating must be a number."
        else:
            clauses.append(MinRatingClause(value=value))

    # page/limit 는 형식만 본다 (0, 음수 보정 없음)
    page_no = _parse_int(page, settings.DEFAULT_PAGE)
    if page_no is None:
        errors["page"] = "Page must be an integer."
    page_size = _parse_int(limit, settings.DEFAULT_LIMIT)
    if page_size is None:
        errors["limit"] = "Limit must be an integer."

    if sort not in (None, "", "date", "rating"):
        errors["sort"] = "Invalid value specified for sort."

    if errors:
        return None, errors

    query = RecipeQuery(
        clauses=tuple(clauses),
        sort=sort or "date",
        page=page_no,
        limit=page_size,
    )
    return query, {}
