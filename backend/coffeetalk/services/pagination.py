# 페이지 계산
from __future__ import annotations
import math
from typing import List, Sequence, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

class PageInfo(BaseModel):
    page: int
    limit: int
    count: int
    pages: int

def total_pages(count: int, size: int) -> int:
    # limit<=0 이면 Mongo가 전체를 돌려주므로 한 페이지로 본다
    if size <= 0:
        return 1 if count else 0
    return math.ceil(count / size)

def page_info(count: int, page: int, limit: int) -> PageInfo:
    return PageInfo(page=page, limit=limit, count=count, pages=total_pages(count, limit))

def slice_page(items: Sequence[T], page: int, size: int) -> List[T]:
    """메모리 상 목록 자르기 (즐겨찾기처럼 이미 다 읽어온 경우)"""
    start = (page - 1) * size
    if start < 0:
        return []
    return list(items[start:start + size])
