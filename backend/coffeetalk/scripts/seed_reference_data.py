# scripts/seed_reference_data.py
# 참조 컬렉션(원두/그라인더/브루어/추출방식) 기본 데이터 채우기: name 기준 upsert
# 사용: python -m coffeetalk.scripts.seed_reference_data
import asyncio
from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import UpdateOne

from coffeetalk.core.config import settings
from coffeetalk.db.indexes import ensure_indexes
from coffeetalk.db.init import BEANS, BREWERS, GRINDERS, METHODS

CATALOGUE: Dict[str, List[Dict[str, Any]]] = {
    BEANS: [
        {"name": "Yirgacheffe Kochere", "roaster": "Common Man", "origin": "Ethiopia", "roast_level": "Light", "process": "Washed"},
        {"name": "Huila Supremo", "roaster": "Nylon", "origin": "Colombia", "roast_level": "Medium", "process": "Washed"},
        {"name": "Santos Bourbon", "roaster": "Tiong Hoe", "origin": "Brazil", "roast_level": "Medium-Dark", "process": "Natural"},
        {"name": "Kiambu AA", "roaster": "Apartment Coffee", "origin": "Kenya", "roast_level": "Light", "process": "Washed"},
    ],
    GRINDERS: [
        {"name": "Comandante C40", "type": "Manual", "burr": "Conical"},
        {"name": "Baratza Encore", "type": "Electric", "burr": "Conical"},
        {"name": "Fellow Ode", "type": "Electric", "burr": "Flat"},
    ],
    BREWERS: [
        {"name": "Hario V60", "material": "Ceramic"},
        {"name": "Kalita Wave 185", "material": "Stainless steel"},
        {"name": "AeroPress", "material": "Plastic"},
        {"name": "Chemex 6-cup", "material": "Glass"},
    ],
    METHODS: [
        {"name": "Pour-over"},
        {"name": "Immersion"},
        {"name": "Pressure"},
    ],
}

async def seed(db) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for collection, docs in CATALOGUE.items():
        ops = [UpdateOne({"name": d["name"]}, {"$setOnInsert": d}, upsert=True) for d in docs]
        result = await db[collection].bulk_write(ops, ordered=False)
        counts[collection] = result.upserted_count
    return counts

async def main():
    cli = AsyncIOMotorClient(settings.MONGO_URI)
    db = cli[settings.MONGO_DB]
    try:
        await ensure_indexes(db)
        counts = await seed(db)
        print(f"[seed] done. upserted={counts}")
    finally:
        cli.close()

if __name__ == "__main__":
    asyncio.run(main())
