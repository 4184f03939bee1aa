# coffeetalk/api/routes_favorites.py
# 사용자별 즐겨찾기: 조회(고정 10개 페이지) / 추가 / 삭제

from __future__ import annotations
from typing import Dict, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends

from coffeetalk.core.config import settings
from coffeetalk.core.deps import parse_path_ids, path_id_errors
from coffeetalk.core.errors import ValidationFailed, success
from coffeetalk.db.init import get_db
from coffeetalk.models.schemas import FavoriteIn
from coffeetalk.services import favorites as favorites_service
from coffeetalk.services.utils import is_valid_email

router = APIRouter(prefix="/favorites", tags=["favorites"])

def _email_errors(email: str) -> Dict[str, str]:
    return {} if is_valid_email(email) else {"email": "Invalid email address."}

def _email_param(email: str) -> str:
    errors = _email_errors(email)
    if errors:
        raise ValidationFailed(errors)
    return email

def _page_param(page: Optional[str]) -> int:
    # 숫자가 아니면 1페이지
    try:
        return int(page) if page else settings.DEFAULT_PAGE
    except ValueError:
        return settings.DEFAULT_PAGE

@router.get("/{email}")
async def list_favorites(email: str, page: Optional[str] = None, db=Depends(get_db)):
    result, info = await favorites_service.list_favorites(db, _email_param(email), _page_param(page))
    return success({"result": result, **info.model_dump()})

@router.post("")
async def add_favorite(body: FavoriteIn, db=Depends(get_db)):
    created = await favorites_service.add_favorite(db, body.email, ObjectId(body.recipe_id))
    return success({"recipe_id": body.recipe_id, "created": created}, status_code=201)

@router.delete("/{email}/{recipe_id}")
async def remove_favorite(
    email: str,
    recipe_id: str,
    db=Depends(get_db),
):
    # 이메일과 레시피 id 형식 에러는 한꺼번에
    errors = {**_email_errors(email), **path_id_errors({"recipe_id": recipe_id})}
    if errors:
        raise ValidationFailed(errors)
    ids = parse_path_ids(recipe_id=recipe_id)
    await favorites_service.remove_favorite(db, email, ids["recipe_id"])
    return success({"recipe_id": ids["recipe_id"]})
