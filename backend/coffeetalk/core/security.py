# 이메일 단방향 해시 (bcrypt)
# 같은 평문이라도 호출마다 salt가 달라 해시 문자열이 달라진다.
# → 저장된 해시끼리 == 비교 금지, 반드시 verify()로 확인
from __future__ import annotations
import asyncio

import bcrypt

from coffeetalk.core.config import settings

class EmailHasher:
    def __init__(self, rounds: int | None = None):
        self.rounds = rounds or settings.HASH_ROUNDS

    def _hash(self, plain: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")

    def _verify(self, plain: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # 깨진 해시(salt 형식 불일치 등)도 불일치로 취급
            return False

    async def hash(self, plain: str) -> str:
        # bcrypt는 CPU 바운드 → 이벤트 루프 밖에서
        return await asyncio.to_thread(self._hash, plain)

    async def verify(self, plain: str, hashed: str | None) -> bool:
        if not plain or not hashed:
            return False
        return await asyncio.to_thread(self._verify, plain, hashed)

def get_hasher() -> EmailHasher:
    return EmailHasher()
