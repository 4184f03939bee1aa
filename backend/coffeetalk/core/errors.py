# 공용 예외 + 응답 봉투({status, data|message})
# - fail  : 400, 필드별 에러 dict
# - error : 500, 고정 메시지 (내부 원인은 로그로만)
from __future__ import annotations
from typing import Any, Dict

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

SERVER_ERROR_MESSAGE = "Internal server error. Please contact administrator."

class ValidationFailed(Exception):
    """잘못된 입력 / 존재하지 않는 참조. 항상 400으로 나간다."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__(errors)
        self.errors = dict(errors)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailed":
        return cls({field: message})

class StorageError(Exception):
    """저장소 쪽 실패(재시도 소진 포함). 500으로 나간다."""

def encode(data: Any) -> Any:
    # ObjectId → 24자리 hex, datetime → ISO
    return jsonable_encoder(data, custom_encoder={ObjectId: str})

def success(data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "success", "data": encode(data)})

def fail(errors: Dict[str, str], status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "fail", "data": errors})

def server_error() -> JSONResponse:
    return JSONResponse(status_code=500, content={"status": "error", "message": SERVER_ERROR_MESSAGE})

def errors_from_pydantic(errors: list) -> Dict[str, str]:
    """
    RequestValidationError.errors() → {"user.email": "..."} 형태.
    loc 맨 앞의 body/query/path 는 떼고, 필드당 첫 메시지만 남긴다.
    """
    out: Dict[str, str] = {}
    for err in errors:
        loc = [str(p) for p in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        key = ".".join(loc) or "body"
        out.setdefault(key, err.get("msg", "Invalid value"))
    return out
