# 즐겨찾기 관리
# - 키: 정규화된 평문 이메일 (해시는 호출마다 달라 조회 키로 못 씀)
# - 추가: 없으면 문서 생성, 있으면 $addToSet (이미 있으면 거부, no-op 아님)
# - 삭제: $pull, 목록이 비어도 문서는 유지
# - 조회: 전체 populate 후 고정 크기(FAVORITES_PAGE_SIZE) 페이지

from __future__ import annotations
import logging
from typing import Any, Dict, List, Tuple

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from coffeetalk.core.config import settings
from coffeetalk.core.errors import ValidationFailed
from coffeetalk.db.init import FAVORITES, RECIPES
from coffeetalk.services.pagination import PageInfo, page_info, slice_page
from coffeetalk.services.populate import populate_recipes
from coffeetalk.services.recipes import public_recipe, recipe_exists
from coffeetalk.services.utils import normalize_email

log = logging.getLogger(__name__)

async def _append(db, email: str, recipe_id: ObjectId) -> None:
    result = await db[FAVORITES].update_one(
        {"user_email": email},
        {"$addToSet": {"coffee_recipes": recipe_id}},
    )
    if result.modified_count == 0:
        raise ValidationFailed.single("recipe_id", "Coffee recipe is already favorited.")

async def add_favorite(db, email: str, recipe_id: ObjectId) -> bool:
    """True 면 즐겨찾기 문서를 새로 만든 경우"""
    email = normalize_email(email)
    if not await recipe_exists(db, recipe_id):
        raise ValidationFailed.single("recipe_id", "Invalid coffee recipe ID.")

    record = await db[FAVORITES].find_one({"user_email": email}, {"_id": 1})
    if record is None:
        try:
            await db[FAVORITES].insert_one({"user_email": email, "coffee_recipes": [recipe_id]})
            log.info("favorites created for new user")
            return True
        except DuplicateKeyError:
            # 동시에 다른 요청이 먼저 만든 경우 → 추가 경로로
            pass

    await _append(db, email, recipe_id)
    return False

async def remove_favorite(db, email: str, recipe_id: ObjectId) -> None:
    email = normalize_email(email)
    record = await db[FAVORITES].find_one({"user_email": email}, {"_id": 1})
    if record is None:
        raise ValidationFailed.single("email", "No favorites found for this email.")

    result = await db[FAVORITES].update_one(
        {"user_email": email},
        {"$pull": {"coffee_recipes": recipe_id}},
    )
    if result.modified_count == 0:
        raise ValidationFailed.single("recipe_id", "Coffee recipe is not in favorites.")

async def list_favorites(db, email: str, page: int) -> Tuple[List[Dict[str, Any]], PageInfo]:
    email = normalize_email(email)
    record = await db[FAVORITES].find_one({"user_email": email}, {"coffee_recipes": 1})
    if record is None:
        raise ValidationFailed.single("email", "No favorites found for this email.")

    ids: List[ObjectId] = list(record.get("coffee_recipes") or [])
    docs = await db[RECIPES].find({"_id": {"$in": ids}}).to_list(length=None)
    by_id = {d["_id"]: d for d in docs}
    # 즐겨찾기 순서 유지, 삭제된 레시피(stale id)는 건너뜀
    recipes = [by_id[i] for i in ids if i in by_id]
    if len(recipes) != len(ids):
        log.warning("favorites has %d stale recipe ids", len(ids) - len(recipes))

    size = settings.FAVORITES_PAGE_SIZE
    window = slice_page(recipes, page, size)
    await populate_recipes(db, window)
    return [public_recipe(r) for r in window], page_info(len(recipes), page, size)
