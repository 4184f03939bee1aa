# 리뷰 추가/수정/삭제 + 평균 평점 재계산
#
# 리뷰 목록 변경과 average_rating 갱신은 반드시 update_one 한 번에 같이 들어간다.
# 읽은 시점의 version 을 필터로 걸어(CAS) 동시 수정이 끼어들면 다시 읽고 재시도.

from __future__ import annotations
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId

from coffeetalk.core.config import settings
from coffeetalk.core.errors import StorageError, ValidationFailed
from coffeetalk.db.init import RECIPES

log = logging.getLogger(__name__)

_ONE_PLACE = Decimal("0.1")

def compute_average(ratings: Iterable[int]) -> float:
    """평균을 소수 첫째 자리에서 반올림(half away from zero). 리뷰 없으면 0"""
    values = [int(r) for r in ratings]
    if not values:
        return 0.0
    avg = Decimal(sum(values)) / Decimal(len(values))
    return float(avg.quantize(_ONE_PLACE, rounding=ROUND_HALF_UP))

def average_with(existing: Iterable[int], new_rating: int) -> float:
    return compute_average([*existing, new_rating])

def _version_filter(recipe_id: ObjectId, doc: Dict[str, Any]) -> Dict[str, Any]:
    # version 필드 도입 전 문서는 "없음"으로 매칭
    if "version" in doc:
        return {"_id": recipe_id, "version": doc["version"]}
    return {"_id": recipe_id, "version": {"$exists": False}}

# mutate(reviews) → (새 평점 목록, 리뷰 배열 변경 연산자들)
Mutation = Callable[[List[Dict[str, Any]]], Tuple[List[int], Dict[str, Any]]]

async def _apply(db, recipe_id: ObjectId, mutate: Mutation) -> float:
    recipes = db[RECIPES]
    attempts = max(1, settings.RATING_UPDATE_ATTEMPTS)

    for attempt in range(1, attempts + 1):
        doc = await recipes.find_one({"_id": recipe_id}, {"reviews": 1, "version": 1})
        if doc is None:
            raise ValidationFailed.single("recipe_id", "Invalid coffee recipe ID.")

        ratings, ops = mutate(doc.get("reviews") or [])
        average = compute_average(ratings)

        update = dict(ops)
        update.setdefault("$set", {})
        update["$set"] = {**update["$set"], "average_rating": average}
        update["$inc"] = {"version": 1}

        result = await recipes.update_one(_version_filter(recipe_id, doc), update)
        if result.matched_count == 1:
            return average
        log.warning("rating update conflict recipe=%s attempt=%d/%d", recipe_id, attempt, attempts)

    raise StorageError(f"rating update for {recipe_id} kept conflicting")

def _find_review(reviews: List[Dict[str, Any]], review_id: ObjectId) -> Optional[Dict[str, Any]]:
    for r in reviews:
        if r.get("_id") == review_id:
            return r
    return None

async def add_review(db, recipe_id: ObjectId, review: Dict[str, Any]) -> float:
    def mutate(reviews):
        ratings = [r.get("rating", 0) for r in reviews]
        ratings.append(review["rating"])
        return ratings, {"$push": {"reviews": review}}

    return await _apply(db, recipe_id, mutate)

async def replace_review(db, recipe_id: ObjectId, review_id: ObjectId, changes: Dict[str, Any]) -> float:
    def mutate(reviews):
        if _find_review(reviews, review_id) is None:
            raise ValidationFailed.single("review_id", "Invalid review ID.")
        updated = [{**r, **changes} if r.get("_id") == review_id else r for r in reviews]
        return [r.get("rating", 0) for r in updated], {"$set": {"reviews": updated}}

    return await _apply(db, recipe_id, mutate)

async def remove_review(db, recipe_id: ObjectId, review_id: ObjectId) -> float:
    def mutate(reviews):
        if _find_review(reviews, review_id) is None:
            raise ValidationFailed.single("review_id", "Invalid review ID.")
        ratings = [r.get("rating", 0) for r in reviews if r.get("_id") != review_id]
        return ratings, {"$pull": {"reviews": {"_id": review_id}}}

    return await _apply(db, recipe_id, mutate)

async def get_review(db, recipe_id: ObjectId, review_id: ObjectId) -> Dict[str, Any]:
    doc = await db[RECIPES].find_one({"_id": recipe_id}, {"reviews": 1})
    if doc is None:
        raise ValidationFailed.single("recipe_id", "Invalid coffee recipe ID.")
    review = _find_review(doc.get("reviews") or [], review_id)
    if review is None:
        raise ValidationFailed.single("review_id", "Invalid review ID.")
    return review
