# 참조 필드 채우기 (beans / grinder / brewer / brewing_method)
# - 필드별로 고유 id 를 모아 $in 한 번씩, 네 필드는 동시에 조회
# - 원두 순서/중복 유지, 없는 id 는 None
# - grinder 는 있을 때만 치환, brewer / brewing_method 는 항상 치환(없으면 None)

from __future__ import annotations
import asyncio
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId

from coffeetalk.db.ids import as_object_id
from coffeetalk.db.init import BEANS, BREWERS, GRINDERS, METHODS

# 레시피 필드 → 참조 컬렉션
REFERENCE_FIELDS = {
    "coffee_beans": BEANS,
    "grinder": GRINDERS,
    "brewer": BREWERS,
    "brewing_method": METHODS,
}

async def get_record_by_id(db, collection: str, record_id: Any) -> Optional[Dict[str, Any]]:
    """단건 조회. id 형식이 틀리면 DB 안 가고 None"""
    oid = as_object_id(record_id)
    if oid is None:
        return None
    return await db[collection].find_one({"_id": oid})

async def _fetch_many(db, collection: str, ids: Iterable[ObjectId]) -> Dict[ObjectId, Dict[str, Any]]:
    wanted = list(ids)
    if not wanted:
        return {}
    docs = await db[collection].find({"_id": {"$in": wanted}}).to_list(length=None)
    return {d["_id"]: d for d in docs}

def _collect_ids(recipes: List[Dict[str, Any]]) -> Dict[str, set]:
    wanted: Dict[str, set] = {field: set() for field in REFERENCE_FIELDS}
    for r in recipes:
        for b in r.get("coffee_beans") or []:
            oid = as_object_id(b)
            if oid is not None:
                wanted["coffee_beans"].add(oid)
        for field in ("grinder", "brewer", "brewing_method"):
            oid = as_object_id(r.get(field))
            if oid is not None:
                wanted[field].add(oid)
    return wanted

def _lookup(table: Dict[ObjectId, Dict[str, Any]], ref: Any) -> Optional[Dict[str, Any]]:
    oid = as_object_id(ref)
    return table.get(oid) if oid is not None else None

async def populate_recipes(db, recipes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """레시피 문서들의 참조 id 를 실제 문서로 바꾼다 (in-place, 저장소는 건드리지 않음)"""
    if not recipes:
        return recipes

    wanted = _collect_ids(recipes)
    fields = list(REFERENCE_FIELDS)
    found = await asyncio.gather(
        *(_fetch_many(db, REFERENCE_FIELDS[f], wanted[f]) for f in fields)
    )
    tables = dict(zip(fields, found))

    for r in recipes:
        r["coffee_beans"] = [_lookup(tables["coffee_beans"], b) for b in (r.get("coffee_beans") or [])]
        if r.get("grinder"):
            r["grinder"] = _lookup(tables["grinder"], r["grinder"])
        r["brewer"] = _lookup(tables["brewer"], r.get("brewer"))
        r["brewing_method"] = _lookup(tables["brewing_method"], r.get("brewing_method"))
    return recipes

async def populate_recipe(db, recipe: Dict[str, Any]) -> Dict[str, Any]:
    await populate_recipes(db, [recipe])
    return recipe
