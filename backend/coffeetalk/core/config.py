# 환경변수 로딩 (.env)
from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"  # 필요 시 prod/staging로 분리
    MONGO_DB: str = "coffee_talk"
    DB_CONNECT_ATTEMPTS: int = 20

    # bcrypt cost factor (4 미만은 bcrypt가 거부)
    HASH_ROUNDS: int = 5

    # 목록 기본값. 즐겨찾기는 limit 파라미터 없이 고정 크기
    DEFAULT_PAGE: int = 1
    DEFAULT_LIMIT: int = 10
    FAVORITES_PAGE_SIZE: int = 10

    # 평점 재계산 CAS 재시도 횟수
    RATING_UPDATE_ATTEMPTS: int = 3

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
