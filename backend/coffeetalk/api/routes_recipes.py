# coffeetalk/api/routes_recipes.py
# 레시피 목록(필터/정렬/페이지) · 단건 조회 · 생성/수정/삭제 · 리뷰

from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import APIRouter, Depends

from coffeetalk.core.deps import parse_path_ids
from coffeetalk.core.errors import fail, success
from coffeetalk.core.security import EmailHasher, get_hasher
from coffeetalk.db.init import get_db
from coffeetalk.db.models.recipe import ReviewDoc, to_mongo
from coffeetalk.models.schemas import OwnerProofIn, RecipeIn, ReviewIn, ReviewUpdateIn
from coffeetalk.services import ratings
from coffeetalk.services import recipes as recipe_service
from coffeetalk.services.criteria import build_recipe_query
from coffeetalk.services.ownership import hash_email, require_owner

log = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])

# ------------------------------
# 조회
# ------------------------------

@router.get("")
async def list_recipes(
    name: Optional[str] = None,
    beans: Optional[str] = None,        # 콤마 구분 원두 id 목록 (모두 포함)
    grinder: Optional[str] = None,
    method: Optional[str] = None,
    brewer: Optional[str] = None,
    rating: Optional[str] = None,       # 평균 평점 하한
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort: Optional[str] = None,         # date(기본) | rating
    db=Depends(get_db),
):
    query, errors = build_recipe_query(
        name=name, beans=beans, grinder=grinder, method=method, brewer=brewer,
        rating=rating, page=page, limit=limit, sort=sort,
    )
    if errors:
        # 에러가 하나라도 있으면 DB 조회 없이 전부 묶어서 반환
        return fail(errors)

    result, info = await recipe_service.list_recipes(db, query)
    return success({"result": result, **info.model_dump()})

@router.get("/{recipe_id}")
async def get_recipe(recipe_id: str, db=Depends(get_db)):
    ids = parse_path_ids(recipe_id=recipe_id)
    return success(await recipe_service.get_populated_recipe(db, ids["recipe_id"]))

# ------------------------------
# 생성/수정/삭제
# ------------------------------

@router.post("")
async def create_recipe(
    body: RecipeIn,
    db=Depends(get_db),
    hasher: EmailHasher = Depends(get_hasher),
):
    new_id = await recipe_service.create_recipe(db, hasher, body)
    return success({"_id": new_id}, status_code=201)

@router.put("/{recipe_id}")
async def update_recipe(
    body: RecipeIn,
    recipe_id: str,
    db=Depends(get_db),
    hasher: EmailHasher = Depends(get_hasher),
):
    ids = parse_path_ids(recipe_id=recipe_id)
    await recipe_service.update_recipe(db, hasher, ids["recipe_id"], body)
    return success({"_id": ids["recipe_id"]})

@router.delete("/{recipe_id}")
async def delete_recipe(
    body: OwnerProofIn,
    recipe_id: str,
    db=Depends(get_db),
    hasher: EmailHasher = Depends(get_hasher),
):
    ids = parse_path_ids(recipe_id=recipe_id)
    await recipe_service.delete_recipe(db, hasher, ids["recipe_id"], body.email)
    return success({"_id": ids["recipe_id"]})

# ------------------------------
# 리뷰 (레시피에 종속, 평균 평점 같이 갱신)
# ------------------------------

@router.post("/{recipe_id}/reviews")
async def add_review(
    body: ReviewIn,
    recipe_id: str,
    db=Depends(get_db),
    hasher: EmailHasher = Depends(get_hasher),
):
    ids = parse_path_ids(recipe_id=recipe_id)
    review = ReviewDoc(
        title=body.title,
        content=body.content,
        rating=body.rating,
        username=body.username,
        email=await hash_email(hasher, body.email),
    )
    average = await ratings.add_review(db, ids["recipe_id"], to_mongo(review))
    return success({"_id": review.id, "average_rating": average}, status_code=201)

@router.put("/{recipe_id}/reviews/{review_id}")
async def update_review(
    body: ReviewUpdateIn,
    recipe_id: str,
    review_id: str,
    db=Depends(get_db),
    hasher: EmailHasher = Depends(get_hasher),
):
    ids = parse_path_ids(recipe_id=recipe_id, review_id=review_id)
    current = await ratings.get_review(db, ids["recipe_id"], ids["review_id"])
    await require_owner(hasher, body.email, current.get("email"))

    changes = {
        "title": body.title,
        "content": body.content,
        "rating": body.rating,
        "date": datetime.now(timezone.utc),
    }
    average = await ratings.replace_review(db, ids["recipe_id"], ids["review_id"], changes)
    return success({"_id": ids["review_id"], "average_rating": average})

@router.delete("/{recipe_id}/reviews/{review_id}")
async def delete_review(
    body: OwnerProofIn,
    recipe_id: str,
    review_id: str,
    db=Depends(get_db),
    hasher: EmailHasher = Depends(get_hasher),
):
    ids = parse_path_ids(recipe_id=recipe_id, review_id=review_id)
    current = await ratings.get_review(db, ids["recipe_id"], ids["review_id"])
    await require_owner(hasher, body.email, current.get("email"))

    average = await ratings.remove_review(db, ids["recipe_id"], ids["review_id"])
    return success({"_id": ids["review_id"], "average_rating": average})
