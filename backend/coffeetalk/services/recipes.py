# 레시피 저장/조회 서비스
# - 조회: 필터/정렬/페이지 → populate → 해시 이메일 제거
# - 생성/수정: 참조 id 존재 여부를 필드별로 모아서 검사
# - 삭제: 레시피 삭제 후 모든 즐겨찾기에서 해당 id 제거

from __future__ import annotations
import logging
from typing import Any, Dict, List, Tuple

from bson import ObjectId

from coffeetalk.core.errors import ValidationFailed
from coffeetalk.core.security import EmailHasher
from coffeetalk.db.init import BEANS, BREWERS, FAVORITES, GRINDERS, METHODS, RECIPES
from coffeetalk.db.models.recipe import OwnerDoc, RecipeDoc, to_mongo
from coffeetalk.models.filters import RecipeQuery
from coffeetalk.models.schemas import RecipeIn
from coffeetalk.services.ownership import hash_email, require_owner
from coffeetalk.services.pagination import PageInfo, page_info
from coffeetalk.services.populate import populate_recipe, populate_recipes
from coffeetalk.services.utils import pick_image

log = logging.getLogger(__name__)

# 수정 시 덮어쓰는 필드 (owner/date/reviews/average_rating/version 제외)
EDITABLE_FIELDS = (
    "image_url", "recipe_name", "description", "total_brew_time", "brew_yield",
    "brewing_method", "coffee_beans", "rest_period", "coffee_amount", "grinder",
    "grind_setting", "water_amount", "water_temperature", "additional_ingredients",
    "brewer", "additional_equipment", "steps",
)

def public_recipe(doc: Dict[str, Any]) -> Dict[str, Any]:
    """응답용: 소유자/리뷰어의 해시 이메일 제거"""
    out = dict(doc)
    out.pop("version", None)
    if isinstance(out.get("user"), dict):
        out["user"] = {k: v for k, v in out["user"].items() if k != "email"}
    out["reviews"] = [
        {k: v for k, v in r.items() if k != "email"} for r in (out.get("reviews") or [])
    ]
    return out

async def list_recipes(db, query: RecipeQuery) -> Tuple[List[Dict[str, Any]], PageInfo]:
    criteria = query.to_filter()
    count = await db[RECIPES].count_documents(criteria)
    cursor = (
        db[RECIPES]
        .find(criteria)
        .sort(query.sort_spec())
        .skip(query.skip)
        .limit(query.limit)
    )
    docs = await cursor.to_list(length=None)
    await populate_recipes(db, docs)
    return [public_recipe(d) for d in docs], page_info(count, query.page, query.limit)

async def get_recipe(db, recipe_id: ObjectId) -> Dict[str, Any]:
    doc = await db[RECIPES].find_one({"_id": recipe_id})
    if doc is None:
        raise ValidationFailed.single("recipe_id", "Invalid coffee recipe ID.")
    return doc

async def get_populated_recipe(db, recipe_id: ObjectId) -> Dict[str, Any]:
    doc = await get_recipe(db, recipe_id)
    return public_recipe(await populate_recipe(db, doc))

async def recipe_exists(db, recipe_id: ObjectId) -> bool:
    return await db[RECIPES].find_one({"_id": recipe_id}, {"_id": 1}) is not None

async def _missing(db, collection: str, ids: List[ObjectId]) -> bool:
    wanted = set(ids)
    found = await db[collection].count_documents({"_id": {"$in": list(wanted)}})
    return found != len(wanted)

async def check_references(db, body: RecipeIn) -> None:
    """참조 문서 존재 확인. 없는 것들을 한꺼번에 모아 400"""
    errors: Dict[str, str] = {}
    if await _missing(db, BEANS, [ObjectId(b) for b in body.coffee_beans]):
        errors["coffee_beans"] = "Invalid coffee bean ID."
    if body.grinder and await _missing(db, GRINDERS, [ObjectId(body.grinder)]):
        errors["grinder"] = "Invalid coffee grinder ID."
    if await _missing(db, BREWERS, [ObjectId(body.brewer)]):
        errors["brewer"] = "Invalid coffee brewer ID."
    if await _missing(db, METHODS, [ObjectId(body.brewing_method)]):
        errors["brewing_method"] = "Invalid brewing method ID."
    if errors:
        raise ValidationFailed(errors)

def _editable_values(body: RecipeIn) -> Dict[str, Any]:
    return {
        "image_url": pick_image(body.image_url),
        "recipe_name": body.recipe_name,
        "description": body.description,
        "total_brew_time": body.total_brew_time,
        "brew_yield": body.brew_yield,
        "brewing_method": ObjectId(body.brewing_method),
        "coffee_beans": [ObjectId(b) for b in body.coffee_beans],
        "rest_period": body.rest_period,
        "coffee_amount": body.coffee_amount,
        "grinder": ObjectId(body.grinder) if body.grinder else None,
        "grind_setting": body.grind_setting,
        "water_amount": body.water_amount,
        "water_temperature": body.water_temperature,
        "additional_ingredients": list(body.additional_ingredients),
        "brewer": ObjectId(body.brewer),
        "additional_equipment": list(body.additional_equipment),
        "steps": list(body.steps),
    }

async def create_recipe(db, hasher: EmailHasher, body: RecipeIn) -> ObjectId:
    await check_references(db, body)
    owner = OwnerDoc(username=body.user.username, email=await hash_email(hasher, body.user.email))
    doc = RecipeDoc(user=owner, **_editable_values(body))
    result = await db[RECIPES].insert_one(to_mongo(doc))
    log.info("recipe created id=%s", result.inserted_id)
    return result.inserted_id

async def update_recipe(db, hasher: EmailHasher, recipe_id: ObjectId, body: RecipeIn) -> None:
    current = await get_recipe(db, recipe_id)
    await require_owner(hasher, body.user.email, (current.get("user") or {}).get("email"), field="user.email")
    await check_references(db, body)

    values = _editable_values(body)
    await db[RECIPES].update_one(
        {"_id": recipe_id},
        {"$set": {k: values[k] for k in EDITABLE_FIELDS}},
    )

async def delete_recipe(db, hasher: EmailHasher, recipe_id: ObjectId, email: str) -> int:
    """삭제 + 즐겨찾기 정리. 정리된 즐겨찾기 문서 수를 돌려준다"""
    current = await get_recipe(db, recipe_id)
    await require_owner(hasher, email, (current.get("user") or {}).get("email"))

    await db[RECIPES].delete_one({"_id": recipe_id})
    # 멀티 문서 트랜잭션 없음: 삭제 직후 바로 정리, 실패하면 목록 조회에서 stale id 를 건너뜀
    pruned = await db[FAVORITES].update_many(
        {"coffee_recipes": recipe_id},
        {"$pull": {"coffee_recipes": recipe_id}},
    )
    log.info("recipe deleted id=%s favorites_pruned=%d", recipe_id, pruned.modified_count)
    return pruned.modified_count
