# 공용 의존성 (경로 id 검증 등)
# 경로 id 는 바디 검증이 끝난 뒤 라우트 안에서 파싱한다.
# 바디가 먼저 실패하면 main.py 의 검증 핸들러가 path_id_errors 를 합쳐서 돌려준다.
from typing import Dict, Mapping

from bson import ObjectId

from coffeetalk.core.errors import ValidationFailed
from coffeetalk.db.ids import is_valid_id

# 경로 파라미터 → 에러 라벨
PATH_ID_LABELS = {
    "recipe_id": "coffee recipe ID",
    "review_id": "review ID",
}

def path_id_errors(values: Mapping[str, str]) -> Dict[str, str]:
    return {
        name: f"Invalid {label}."
        for name, label in PATH_ID_LABELS.items()
        if name in values and not is_valid_id(values[name])
    }

def parse_path_ids(**values: str) -> Dict[str, ObjectId]:
    # 스토리지 접근 전에 형식부터 거른다 (여러 개면 에러도 한꺼번에)
    errors = path_id_errors(values)
    if errors:
        raise ValidationFailed(errors)
    return {name: ObjectId(value) for name, value in values.items()}
