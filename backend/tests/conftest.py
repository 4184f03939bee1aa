import asyncio
import os
from datetime import datetime, timedelta

# bcrypt 최소 cost 로 (테스트 속도)
os.environ.setdefault("HASH_ROUNDS", "4")

import pytest
import pytest_asyncio
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from coffeetalk.core.security import EmailHasher
from coffeetalk.db.init import get_db
from coffeetalk.main import app

# --- Test Database Setup ---

async def seed_references(db):
    """원두 3 / 그라인더 1 / 브루어 1 / 추출방식 1"""
    beans = [
        {"_id": ObjectId(), "name": "Yirgacheffe", "origin": "Ethiopia"},
        {"_id": ObjectId(), "name": "Huila", "origin": "Colombia"},
        {"_id": ObjectId(), "name": "Santos", "origin": "Brazil"},
    ]
    grinder = {"_id": ObjectId(), "name": "Comandante C40"}
    brewer = {"_id": ObjectId(), "name": "Hario V60"}
    method = {"_id": ObjectId(), "name": "Pour-over"}
    await db.beans.insert_many(beans)
    await db.grinders.insert_one(grinder)
    await db.brewers.insert_one(brewer)
    await db.methods.insert_one(method)
    return {
        "beans": [b["_id"] for b in beans],
        "grinder": grinder["_id"],
        "brewer": brewer["_id"],
        "method": method["_id"],
    }

def make_recipe(refs, **overrides):
    """DB 직접 삽입용 레시피 문서 (참조는 ObjectId)"""
    doc = {
        "_id": ObjectId(),
        "image_url": "https://example.com/v60.jpg",
        "recipe_name": "Bright V60",
        "description": "A clean and bright cup",
        "average_rating": 0.0,
        "user": {"username": "barista", "email": "not-a-real-hash"},
        "date": datetime(2024, 1, 1),
        "total_brew_time": "3 min",
        "brew_yield": "250 ml",
        "brewing_method": refs["method"],
        "coffee_beans": [refs["beans"][0]],
        "rest_period": "8-14 days",
        "coffee_amount": 15,
        "grinder": refs["grinder"],
        "grind_setting": "24 clicks",
        "water_amount": "250 ml",
        "water_temperature": 93,
        "additional_ingredients": [],
        "brewer": refs["brewer"],
        "additional_equipment": [],
        "steps": ["Bloom 45g for 45s", "Pour to 250g"],
        "reviews": [],
        "version": 0,
    }
    doc.update(overrides)
    return doc

def insert_recipes(db, docs):
    asyncio.run(db.recipes.insert_many(docs))

def dated(refs, n, **overrides):
    """n 개, 날짜가 하루씩 늘어나는 레시피"""
    base = datetime(2024, 1, 1)
    return [make_recipe(refs, date=base + timedelta(days=i), recipe_name=f"Recipe {i:02d}", **overrides) for i in range(n)]

@pytest.fixture
def db():
    return AsyncMongoMockClient()["coffee_talk_test"]

@pytest.fixture
def refs(db):
    return asyncio.run(seed_references(db))

@pytest_asyncio.fixture
async def arefs(db):
    return await seed_references(db)

@pytest.fixture
def hasher():
    return EmailHasher(rounds=4)

@pytest.fixture
def client(db):
    """Test client with DB override. lifespan 은 띄우지 않음 (실제 Mongo 접속 없음)"""
    app.dependency_overrides[get_db] = lambda: db
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()

@pytest.fixture
def recipe_payload(refs):
    def _make(**overrides):
        body = {
            "image_url": "https://example.com/v60.jpg",
            "recipe_name": "Bright V60",
            "description": "A clean and bright cup",
            "total_brew_time": "3 min 30 sec",
            "brew_yield": "250 ml",
            "brewing_method": str(refs["method"]),
            "coffee_beans": [str(refs["beans"][0]), str(refs["beans"][1])],
            "rest_period": "8-14 days",
            "coffee_amount": 15,
            "grinder": str(refs["grinder"]),
            "grind_setting": "24 clicks",
            "water_amount": "250 ml",
            "water_temperature": 93,
            "additional_ingredients": [],
            "brewer": str(refs["brewer"]),
            "additional_equipment": ["Gooseneck kettle"],
            "steps": ["Bloom 45g for 45s", "Pour to 250g by 2:00"],
            "user": {"username": "barista", "email": "Owner@Example.com"},
        }
        body.update(overrides)
        return body
    return _make
