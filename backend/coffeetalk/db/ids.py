# 문서 식별자 유틸
# ObjectId.is_valid 는 12바이트 임의 문자열도 통과시키므로 24자리 hex만 허용
from __future__ import annotations
import re
from typing import Any, Optional

from bson import ObjectId

from coffeetalk.core.errors import ValidationFailed

ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")

def is_valid_id(value: Any) -> bool:
    if isinstance(value, ObjectId):
        return True
    return isinstance(value, str) and bool(ID_RE.match(value))

def as_object_id(value: Any) -> Optional[ObjectId]:
    """저장된 참조값(ObjectId 또는 레거시 문자열) → ObjectId. 변환 불가면 None"""
    if isinstance(value, ObjectId):
        return value
    if is_valid_id(value):
        return ObjectId(value)
    return None

def parse_id(value: Any, field: str, label: str = "ID") -> ObjectId:
    # 스토리지 접근 전에 형식부터 거른다
    oid = as_object_id(value)
    if oid is None:
        raise ValidationFailed.single(field, f"Invalid {label}.")
    return oid
