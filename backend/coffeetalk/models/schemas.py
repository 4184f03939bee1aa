# 요청 바디 스키마 (pydantic v2)
# 알 수 없는 키는 거부(extra="forbid"), 형식 에러는 main.py 핸들러에서 필드별 400 으로 변환
from __future__ import annotations
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from coffeetalk.db.ids import is_valid_id
from coffeetalk.services.utils import is_valid_email, normalize_email

REST_PERIODS = ("Not rested", "1-7 days", "8-14 days", "15-30 days", "More than 30 days")
RestPeriod = Literal["Not rested", "1-7 days", "8-14 days", "15-30 days", "More than 30 days"]

def _check_id(value: str) -> str:
    if not is_valid_id(value):
        raise PydanticCustomError("object_id", "Invalid ID.")
    return value

def _check_email(value: str) -> str:
    if not is_valid_email(value):
        raise PydanticCustomError("email", "Invalid email address.")
    return normalize_email(value)

ObjectIdStr = Annotated[str, AfterValidator(_check_id)]
Email = Annotated[str, AfterValidator(_check_email)]

class _Body(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

class UserIn(_Body):
    username: str = Field(min_length=5)
    email: Email

class RecipeIn(_Body):
    image_url: Optional[str] = None
    recipe_name: str = Field(min_length=5)
    description: str = Field(min_length=5)
    total_brew_time: str = Field(min_length=1)      # "3 min 30 sec"
    brew_yield: str = Field(min_length=1)           # "250 ml"
    brewing_method: ObjectIdStr
    coffee_beans: List[ObjectIdStr] = Field(min_length=1)
    rest_period: RestPeriod
    coffee_amount: float = Field(gt=0)              # g
    grinder: Optional[ObjectIdStr] = None
    grind_setting: str = ""
    water_amount: str = Field(min_length=1)         # "250 ml"
    water_temperature: float
    additional_ingredients: List[str] = Field(default_factory=list)
    brewer: ObjectIdStr
    additional_equipment: List[str] = Field(default_factory=list)
    steps: List[str] = Field(min_length=1)
    user: UserIn

    @field_validator("coffee_beans")
    @classmethod
    def _dedupe_beans(cls, v: List[str]) -> List[str]:
        # 집합 의미: 순서 유지하며 중복 제거
        return list(dict.fromkeys(s.lower() for s in v))

    @field_validator("grinder", mode="before")
    @classmethod
    def _blank_grinder(cls, v):
        # 공백뿐인 값도 미지정 (str_strip_whitespace 보다 먼저 돈다)
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    @field_validator("steps")
    @classmethod
    def _steps_not_blank(cls, v: List[str]) -> List[str]:
        if any(not s for s in v):
            raise PydanticCustomError("blank_step", "Steps must not be empty.")
        return v

class ReviewIn(_Body):
    title: str = Field(min_length=5)
    content: str = Field(min_length=5)
    rating: int = Field(ge=1, le=5)
    username: str = Field(min_length=5)
    email: Email

class ReviewUpdateIn(_Body):
    title: str = Field(min_length=5)
    content: str = Field(min_length=5)
    rating: int = Field(ge=1, le=5)
    email: Email                                    # 소유권 확인용

class OwnerProofIn(_Body):
    email: Email

class FavoriteIn(_Body):
    email: Email
    recipe_id: ObjectIdStr
