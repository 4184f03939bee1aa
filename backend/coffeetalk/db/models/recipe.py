# 레시피/리뷰 저장 스키마
# 참조 필드(coffee_beans/grinder/brewer/brewing_method)는 ObjectId 로 저장, 조회 시 populate
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime, timezone

from bson import ObjectId

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class OwnerDoc(BaseModel):
    username: str
    email: str                      # bcrypt 해시 (평문 저장 안 함)

class ReviewDoc(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    date: datetime = Field(default_factory=_utcnow)
    title: str
    content: str
    rating: int
    username: str
    email: str                      # bcrypt 해시

class RecipeDoc(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    image_url: str
    recipe_name: str
    description: str
    average_rating: float = 0.0
    user: OwnerDoc
    date: datetime = Field(default_factory=_utcnow)
    total_brew_time: str
    brew_yield: str
    brewing_method: ObjectId
    coffee_beans: List[ObjectId]
    rest_period: str
    coffee_amount: float
    grinder: Optional[ObjectId] = None
    grind_setting: str = ""
    water_amount: str
    water_temperature: float
    additional_ingredients: List[str] = Field(default_factory=list)
    brewer: ObjectId
    additional_equipment: List[str] = Field(default_factory=list)
    steps: List[str]
    reviews: List[ReviewDoc] = Field(default_factory=list)
    version: int = 0                # 평점 CAS 용

def to_mongo(doc: BaseModel) -> dict:
    # 리뷰 id 는 "_id" 키로 저장
    return doc.model_dump(by_alias=True)
