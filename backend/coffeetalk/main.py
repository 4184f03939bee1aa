# coffeetalk/main.py
# FastAPI 앱 초기화 및 라우터 설정
# 라우터는 각 기능별로 분리하여 관리

from __future__ import annotations

import logging
from asyncio import sleep

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pymongo.errors import PyMongoError

from coffeetalk.api.routes_favorites import router as favorites_router
from coffeetalk.api.routes_recipes import router as recipes_router
from coffeetalk.api.routes_references import router as references_router
from coffeetalk.core.config import settings
from coffeetalk.core.deps import path_id_errors
from coffeetalk.core.errors import (
    StorageError,
    ValidationFailed,
    errors_from_pydantic,
    fail,
    server_error,
)
from coffeetalk.db.indexes import ensure_indexes
from coffeetalk.db.init import close_db, get_db, init_db

logging.basicConfig(level=settings.LOG_LEVEL)
log = logging.getLogger(__name__)

app = FastAPI(title="CoffeeTalk - API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------------------------------
# 에러 → {status, data|message}
# ------------------------------

@app.exception_handler(ValidationFailed)
async def on_validation_failed(request: Request, exc: ValidationFailed):
    return fail(exc.errors)

@app.exception_handler(RequestValidationError)
async def on_request_validation(request: Request, exc: RequestValidationError):
    # 바디 에러와 경로 id 에러를 한 묶음으로
    errors = errors_from_pydantic(exc.errors())
    for field, message in path_id_errors(request.path_params).items():
        errors.setdefault(field, message)
    return fail(errors)

@app.exception_handler(PyMongoError)
async def on_storage_error(request: Request, exc: PyMongoError):
    log.exception("storage failure on %s %s", request.method, request.url.path)
    return server_error()

@app.exception_handler(StorageError)
async def on_storage_conflict(request: Request, exc: StorageError):
    log.error("storage error on %s %s: %s", request.method, request.url.path, exc)
    return server_error()

@app.exception_handler(Exception)
async def on_unexpected_error(request: Request, exc: Exception):
    # 그 밖의 모든 예외도 같은 봉투로 (원인은 로그로만)
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    return server_error()

# 앱 시작/종료 이벤트 핸들러
@app.on_event("startup")
async def on_startup() -> None:
    # 1) DB 먼저 붙는다 (DB_CONNECT_ATTEMPTS 회, 1초 간격)
    db = None
    for i in range(settings.DB_CONNECT_ATTEMPTS):
        try:
            db = await init_db()
            log.info("[startup] db ready")
            break
        except Exception as e:
            log.warning("[startup] db init retry %d: %s", i + 1, e)
            await sleep(1.0)
    if db is None:
        log.error("[startup] db init failed after retries")
        return

    # 2) 인덱스 보장
    try:
        await ensure_indexes(db)
        log.info("[startup] indexes ensured")
    except PyMongoError:
        log.exception("[startup] ensure_indexes failed")

@app.on_event("shutdown")
async def on_shutdown() -> None:
    # 몽고db 커넥션 정리
    await close_db()

@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Welcome to CoffeeTalk API"

@app.get("/health")
async def health(db=Depends(get_db)):
    ok = {"status": "ok", "db": "ok"}
    try:
        await db.command("ping")
    except Exception as e:
        ok["db"] = f"error: {e}"
    return ok

# 라우터 prefix는 각 파일 내에서 정의함 , 중복 prefix 금지
app.include_router(recipes_router)
app.include_router(favorites_router)
app.include_router(references_router)
