# 소유권 확인: 평문 이메일 vs 저장된 해시
# 불일치는 예외가 아니라 False. 요청을 막을 때만 require_owner 가 400 을 던진다.
from __future__ import annotations
from typing import Optional

from coffeetalk.core.errors import ValidationFailed
from coffeetalk.core.security import EmailHasher
from coffeetalk.services.utils import normalize_email

async def verify_owner(hasher: EmailHasher, email: str, stored_hash: Optional[str]) -> bool:
    return await hasher.verify(normalize_email(email), stored_hash)

async def require_owner(hasher: EmailHasher, email: str, stored_hash: Optional[str], field: str = "email") -> None:
    if not await verify_owner(hasher, email, stored_hash):
        raise ValidationFailed.single(field, "Email does not match the owner's email.")

async def hash_email(hasher: EmailHasher, email: str) -> str:
    return await hasher.hash(normalize_email(email))
