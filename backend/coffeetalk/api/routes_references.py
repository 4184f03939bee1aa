# coffeetalk/api/routes_references.py
# 원두/그라인더/브루어/추출방식: 읽기 전용 참조 문서

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from coffeetalk.core.errors import ValidationFailed, success
from coffeetalk.db.ids import parse_id
from coffeetalk.db.init import BEANS, BREWERS, GRINDERS, METHODS, get_db
from coffeetalk.services.populate import get_record_by_id

# 경로 → (컬렉션, 경로 파라미터, 에러 라벨)
REFERENCE_ROUTES = {
    "beans": (BEANS, "bean_id", "coffee bean ID"),
    "grinders": (GRINDERS, "grinder_id", "coffee grinder ID"),
    "brewers": (BREWERS, "brewer_id", "coffee brewer ID"),
    "methods": (METHODS, "method_id", "brewing method ID"),
}

def _build_router(prefix: str, collection: str, param: str, label: str) -> APIRouter:
    r = APIRouter(prefix=f"/{prefix}", tags=["references"])

    @r.get("")
    async def list_all(db=Depends(get_db)):
        docs = await db[collection].find({}).to_list(length=None)
        return success(docs)

    @r.get(f"/{{{param}}}")
    async def get_one(request: Request, db=Depends(get_db)):
        oid = parse_id(request.path_params[param], param, label)
        doc = await get_record_by_id(db, collection, oid)
        if doc is None:
            raise ValidationFailed.single(param, f"Invalid {label}.")
        return success(doc)

    return r

router = APIRouter()
for _prefix, (_collection, _param, _label) in REFERENCE_ROUTES.items():
    router.include_router(_build_router(_prefix, _collection, _param, _label))
