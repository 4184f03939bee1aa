# 레시피 목록 필터: 인식되는 절(clause)만 명시적으로 표현
# 각 절은 자기 몫의 Mongo 조건만 만든다. 알 수 없는 키는 애초에 만들 수 없음.
from __future__ import annotations
import re
from typing import Annotated, Any, Dict, List, Literal, Tuple, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

SortKey = Literal["date", "rating"]

# 동점이면 _id 역순 (페이지 경계 안정화)
SORT_SPECS: Dict[str, List[Tuple[str, int]]] = {
    "date": [("date", -1), ("_id", -1)],
    "rating": [("average_rating", -1), ("_id", -1)],
}

class _Clause(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

class NameClause(_Clause):
    kind: Literal["name"] = "name"
    text: str

    def to_mongo(self) -> Dict[str, Any]:
        # 부분 문자열 + 대소문자 무시 (정규식 메타문자는 이스케이프)
        return {"recipe_name": {"$regex": re.escape(self.text), "$options": "i"}}

class BeansClause(_Clause):
    kind: Literal["beans"] = "beans"
    ids: Tuple[ObjectId, ...]

    def to_mongo(self) -> Dict[str, Any]:
        # 레시피 원두 집합 ⊇ 요청 id 전체 (any 아님)
        return {"coffee_beans": {"$all": list(self.ids)}}

class ReferenceClause(_Clause):
    kind: Literal["reference"] = "reference"
    field: Literal["grinder", "brewing_method", "brewer"]
    id: ObjectId

    def to_mongo(self) -> Dict[str, Any]:
        return {self.field: {"$eq": self.id}}

class MinRatingClause(_Clause):
    kind: Literal["min_rating"] = "min_rating"
    value: float

    def to_mongo(self) -> Dict[str, Any]:
        return {"average_rating": {"$gte": self.value}}

FilterClause = Annotated[
    Union[NameClause, BeansClause, ReferenceClause, MinRatingClause],
    Field(discriminator="kind"),
]

class RecipeQuery(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    clauses: Tuple[FilterClause, ...] = ()
    sort: SortKey = "date"
    page: int = 1
    limit: int = 10

    def to_filter(self) -> Dict[str, Any]:
        criteria: Dict[str, Any] = {}
        for clause in self.clauses:
            criteria.update(clause.to_mongo())
        return criteria

    def sort_spec(self) -> List[Tuple[str, int]]:
        return SORT_SPECS[self.sort]

    @property
    def skip(self) -> int:
        # 범위 보정 없음: page<=0 이면 음수 skip 그대로 전달
        return (self.page - 1) * self.limit
