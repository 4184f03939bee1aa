# coffeetalk/services/utils.py
# 이메일 정규화/형식 검사, 기본 이미지 선택

from __future__ import annotations
import random
import re

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# image_url 이 비어 있으면 이 중 하나를 고른다
FALLBACK_IMAGES = [
    "https://images.unsplash.com/photo-1495474472287-4d71bcdd2085",
    "https://images.unsplash.com/photo-1509042239860-f550ce710b93",
    "https://images.unsplash.com/photo-1461023058943-07fcbe16d735",
    "https://images.unsplash.com/photo-1497935586351-b67a49e012bf",
    "https://images.unsplash.com/photo-1511920170033-f8396924c348",
]

def normalize_email(email: str) -> str:
    # 즐겨찾기 키 / 해시 입력 모두 이 값을 쓴다
    return (email or "").strip().lower()

def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(normalize_email(email)))

def pick_image(image_url: str | None) -> str:
    url = (image_url or "").strip()
    return url or random.choice(FALLBACK_IMAGES)
