# 컬렉션 인덱스 생성
# 앱 스타트업에서 한 번 ensure_indexes()를 await로 호출한다.

from pymongo import ASCENDING, DESCENDING

from coffeetalk.db.init import FAVORITES, RECIPES, get_db

async def ensure_indexes(db=None):
    db = db if db is not None else get_db()

    # 즐겨찾기: 사용자(정규화 이메일)당 문서 1개
    await db[FAVORITES].create_index("user_email", unique=True, name="uniq_user_email")

    # 레시피 목록 정렬/필터
    await db[RECIPES].create_index([("date", DESCENDING), ("_id", DESCENDING)], name="date_-1__id_-1")
    await db[RECIPES].create_index([("average_rating", DESCENDING), ("_id", DESCENDING)], name="rating_-1__id_-1")
    await db[RECIPES].create_index([("coffee_beans", ASCENDING)], name="coffee_beans_1")
    await db[RECIPES].create_index([("recipe_name", ASCENDING)], name="recipe_name_1")
