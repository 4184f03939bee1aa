import asyncio
from datetime import timedelta

from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError
from fastapi.testclient import TestClient

from coffeetalk.core.errors import SERVER_ERROR_MESSAGE
from coffeetalk.db.init import get_db
from coffeetalk.db.models.recipe import ReviewDoc
from coffeetalk.main import app
from coffeetalk.services.utils import FALLBACK_IMAGES

from conftest import dated, insert_recipes, make_recipe

# --- 목록 ---

def test_list_paginates_with_requested_limit(client, db, refs):
    insert_recipes(db, dated(refs, 23))

    first = client.get("/recipes", params={"limit": 10})
    assert first.status_code == 200
    body = first.json()
    assert body["status"] == "success"
    assert body["data"]["pages"] == 3
    assert body["data"]["count"] == 23
    assert len(body["data"]["result"]) == 10
    # 기본 정렬: 최신순
    assert body["data"]["result"][0]["recipe_name"] == "Recipe 22"

    third = client.get("/recipes", params={"limit": 10, "page": 3}).json()["data"]
    assert [r["recipe_name"] for r in third["result"]] == ["Recipe 02", "Recipe 01", "Recipe 00"]

    fourth = client.get("/recipes", params={"limit": 10, "page": 4})
    assert fourth.status_code == 200
    assert fourth.json()["data"]["result"] == []

def test_list_page_count_follows_limit(client, db, refs):
    insert_recipes(db, dated(refs, 23))
    data = client.get("/recipes", params={"limit": 5}).json()["data"]
    assert data["pages"] == 5
    assert data["limit"] == 5

def test_list_results_are_populated_and_hide_emails(client, db, refs):
    review = {"_id": ObjectId(), "title": "Lovely", "content": "Very sweet", "rating": 5,
              "username": "reviewer", "email": "secret-hash"}
    insert_recipes(db, [make_recipe(refs, reviews=[review], average_rating=5.0)])

    recipe = client.get("/recipes").json()["data"]["result"][0]

    assert recipe["coffee_beans"][0]["name"] == "Yirgacheffe"
    assert recipe["brewer"]["name"] == "Hario V60"
    assert recipe["brewing_method"]["name"] == "Pour-over"
    assert recipe["grinder"]["name"] == "Comandante C40"
    assert "email" not in recipe["user"]
    assert "email" not in recipe["reviews"][0]
    assert "version" not in recipe
    assert isinstance(recipe["_id"], str) and len(recipe["_id"]) == 24

def test_list_filters(client, db, refs):
    b0, b1, b2 = refs["beans"]
    insert_recipes(db, [
        make_recipe(refs, recipe_name="Fruity Kalita", coffee_beans=[b0, b1], average_rating=4.5),
        make_recipe(refs, recipe_name="Chocolate V60", coffee_beans=[b0], average_rating=3.0),
        make_recipe(refs, recipe_name="Nutty AeroPress", coffee_beans=[b1, b2], average_rating=4.0, grinder=None),
    ])

    def names(**params):
        data = client.get("/recipes", params=params).json()["data"]
        return sorted(r["recipe_name"] for r in data["result"])

    assert names(name="v60") == ["Chocolate V60"]
    assert names(beans=f"{b0},{b1}") == ["Fruity Kalita"]
    assert names(beans=str(b1)) == ["Fruity Kalita", "Nutty AeroPress"]
    assert names(rating="4") == ["Fruity Kalita", "Nutty AeroPress"]
    assert names(grinder=str(refs["grinder"])) == ["Chocolate V60", "Fruity Kalita"]
    assert names(brewer=str(refs["brewer"]), method=str(refs["method"])) == [
        "Chocolate V60", "Fruity Kalita", "Nutty AeroPress"
    ]

def test_sort_by_rating(client, db, refs):
    insert_recipes(db, [
        make_recipe(refs, recipe_name="Low", average_rating=2.0),
        make_recipe(refs, recipe_name="High", average_rating=4.8),
        make_recipe(refs, recipe_name="Mid", average_rating=3.3),
    ])
    result = client.get("/recipes", params={"sort": "rating"}).json()["data"]["result"]
    assert [r["recipe_name"] for r in result] == ["High", "Mid", "Low"]

def test_list_reports_all_query_errors(client, db, refs):
    res = client.get("/recipes", params={"rating": "abc", "sort": "popularity", "grinder": "123"})
    assert res.status_code == 400
    body = res.json()
    assert body["status"] == "fail"
    assert set(body["data"]) == {"rating", "sort", "grinder"}

# --- 단건 ---

def test_get_single_recipe(client, db, refs):
    doc = make_recipe(refs)
    insert_recipes(db, [doc])
    res = client.get(f"/recipes/{doc['_id']}")
    assert res.status_code == 200
    assert res.json()["data"]["coffee_beans"][0]["origin"] == "Ethiopia"

def test_get_unknown_or_malformed_recipe(client, refs):
    assert client.get(f"/recipes/{ObjectId()}").json()["data"] == {"recipe_id": "Invalid coffee recipe ID."}
    res = client.get("/recipes/not-an-id")
    assert res.status_code == 400
    assert "recipe_id" in res.json()["data"]

# --- 생성 ---

def test_create_recipe(client, db, recipe_payload):
    payload = recipe_payload()
    payload["coffee_beans"].append(payload["coffee_beans"][0])   # 중복은 하나로
    res = client.post("/recipes", json=payload)

    assert res.status_code == 201
    new_id = res.json()["data"]["_id"]

    stored = asyncio.run(db.recipes.find_one({"_id": ObjectId(new_id)}))
    assert stored["reviews"] == []
    assert stored["average_rating"] == 0
    assert stored["version"] == 0
    assert len(stored["coffee_beans"]) == 2
    assert isinstance(stored["brewer"], ObjectId)
    # 이메일은 해시로만 저장
    assert stored["user"]["email"] != "owner@example.com"
    assert stored["user"]["email"].startswith("$2")

def test_create_picks_fallback_image(client, db, recipe_payload):
    res = client.post("/recipes", json=recipe_payload(image_url=""))
    stored = asyncio.run(db.recipes.find_one({"_id": ObjectId(res.json()["data"]["_id"])}))
    assert stored["image_url"] in FALLBACK_IMAGES

def test_create_collects_field_errors(client, recipe_payload):
    payload = recipe_payload(
        recipe_name="V60",
        coffee_beans=[],
        rest_period="forever",
        steps=[],
        user={"username": "bob", "email": "nope"},
        brewer="123",
    )
    res = client.post("/recipes", json=payload)
    assert res.status_code == 400
    errors = res.json()["data"]
    for field in ("recipe_name", "coffee_beans", "rest_period", "steps", "user.username", "user.email", "brewer"):
        assert field in errors

def test_create_rejects_unknown_keys(client, recipe_payload):
    res = client.post("/recipes", json=recipe_payload(average_rating=5))
    assert res.status_code == 400
    assert "average_rating" in res.json()["data"]

def test_create_checks_references_exist(client, recipe_payload):
    payload = recipe_payload(
        coffee_beans=[str(ObjectId())],
        grinder=str(ObjectId()),
        brewer=str(ObjectId()),
        brewing_method=str(ObjectId()),
    )
    res = client.post("/recipes", json=payload)
    assert res.status_code == 400
    assert set(res.json()["data"]) == {"coffee_beans", "grinder", "brewer", "brewing_method"}

def test_create_without_grinder(client, db, recipe_payload):
    res = client.post("/recipes", json=recipe_payload(grinder=None))
    assert res.status_code == 201
    fetched = client.get(f"/recipes/{res.json()['data']['_id']}").json()["data"]
    assert fetched["grinder"] is None

# --- 수정 ---

def test_update_requires_owner(client, db, recipe_payload):
    new_id = client.post("/recipes", json=recipe_payload()).json()["data"]["_id"]

    intruder = recipe_payload(recipe_name="Hijacked recipe", user={"username": "mallory", "email": "mallory@example.com"})
    res = client.put(f"/recipes/{new_id}", json=intruder)
    assert res.status_code == 400
    assert "user.email" in res.json()["data"]

    owner = recipe_payload(recipe_name="Slower V60", steps=["Bloom", "Pour slowly"],
                           user={"username": "barista", "email": "owner@example.com"})
    res = client.put(f"/recipes/{new_id}", json=owner)
    assert res.status_code == 200

    fetched = client.get(f"/recipes/{new_id}").json()["data"]
    assert fetched["recipe_name"] == "Slower V60"
    assert fetched["steps"] == ["Bloom", "Pour slowly"]
    assert fetched["user"]["username"] == "barista"

def test_update_keeps_reviews_and_rating(client, db, recipe_payload):
    new_id = client.post("/recipes", json=recipe_payload()).json()["data"]["_id"]
    client.post(f"/recipes/{new_id}/reviews", json={
        "title": "Great cup", "content": "Juicy and sweet", "rating": 4,
        "username": "reviewer", "email": "reviewer@example.com",
    })

    client.put(f"/recipes/{new_id}", json=recipe_payload(recipe_name="Renamed recipe"))

    fetched = client.get(f"/recipes/{new_id}").json()["data"]
    assert fetched["average_rating"] == 4.0
    assert len(fetched["reviews"]) == 1

# --- 삭제 ---

def test_delete_requires_owner_and_prunes_favorites(client, db, recipe_payload):
    keep_id = client.post("/recipes", json=recipe_payload(recipe_name="Keeper recipe")).json()["data"]["_id"]
    gone_id = client.post("/recipes", json=recipe_payload()).json()["data"]["_id"]

    for email in ("fan1@example.com", "fan2@example.com"):
        client.post("/favorites", json={"email": email, "recipe_id": gone_id})
    client.post("/favorites", json={"email": "fan1@example.com", "recipe_id": keep_id})

    res = client.request("DELETE", f"/recipes/{gone_id}", json={"email": "someone@example.com"})
    assert res.status_code == 400
    assert "email" in res.json()["data"]

    res = client.request("DELETE", f"/recipes/{gone_id}", json={"email": "owner@example.com"})
    assert res.status_code == 200

    assert client.get(f"/recipes/{gone_id}").status_code == 400
    fan1 = asyncio.run(db.favorites.find_one({"user_email": "fan1@example.com"}))
    fan2 = asyncio.run(db.favorites.find_one({"user_email": "fan2@example.com"}))
    assert fan1["coffee_recipes"] == [ObjectId(keep_id)]
    assert fan2["coffee_recipes"] == []

# --- 공통 ---

class BrokenCollection:
    async def count_documents(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("mongo is down")

    async def find_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("mongo is down")

class BrokenDb:
    def __getitem__(self, name):
        return BrokenCollection()

def test_storage_failure_is_generic_500(client):
    app.dependency_overrides[get_db] = lambda: BrokenDb()

    for res in (client.get("/recipes"), client.get(f"/recipes/{ObjectId()}")):
        assert res.status_code == 500
        assert res.json() == {"status": "error", "message": SERVER_ERROR_MESSAGE}
        assert "mongo is down" not in res.text

def test_invalid_query_never_touches_storage(client):
    app.dependency_overrides[get_db] = lambda: BrokenDb()
    res = client.get("/recipes", params={"sort": "popularity"})
    assert res.status_code == 400

def test_root(client):
    assert client.get("/").text == "Welcome to CoffeeTalk API"

class StrictCursor:
    """실제 드라이버처럼 음수 skip 을 거부하는 커서"""

    def sort(self, spec):
        return self

    def skip(self, n):
        if n < 0:
            raise ValueError("skip must be >= 0")
        return self

    def limit(self, n):
        return self

    async def to_list(self, length=None):
        return []

class StrictRecipes:
    async def count_documents(self, criteria):
        return 0

    def find(self, criteria):
        return StrictCursor()

class StrictDb:
    def __getitem__(self, name):
        return StrictRecipes()

def test_driver_rejecting_page_zero_still_answers_with_envelope(client):
    app.dependency_overrides[get_db] = lambda: StrictDb()
    lenient = TestClient(app, raise_server_exceptions=False)

    res = lenient.get("/recipes", params={"page": "0", "limit": "10"})
    assert res.status_code == 500
    assert res.json() == {"status": "error", "message": SERVER_ERROR_MESSAGE}
    assert "skip must be" not in res.text

    assert lenient.get("/recipes", params={"page": "1", "limit": "10"}).status_code == 200

def test_uninitialized_database_answers_with_envelope(client):
    app.dependency_overrides.pop(get_db, None)
    lenient = TestClient(app, raise_server_exceptions=False)

    res = lenient.get("/recipes")
    assert res.status_code == 500
    assert res.json() == {"status": "error", "message": SERVER_ERROR_MESSAGE}

# --- 경로 id + 바디 에러 ---

def test_bad_path_id_and_bad_body_reported_together(client, recipe_payload):
    res = client.put("/recipes/xyz", json=recipe_payload(recipe_name="ab"))
    assert res.status_code == 400
    errors = res.json()["data"]
    assert errors["recipe_id"] == "Invalid coffee recipe ID."
    assert "recipe_name" in errors

    res = client.request("DELETE", "/recipes/xyz", json={"email": "nope"})
    assert set(res.json()["data"]) == {"recipe_id", "email"}

def test_bad_path_id_with_valid_body(client, recipe_payload):
    res = client.put("/recipes/xyz", json=recipe_payload())
    assert res.status_code == 400
    assert res.json()["data"] == {"recipe_id": "Invalid coffee recipe ID."}

def test_whitespace_grinder_is_treated_as_absent(client, db, recipe_payload):
    res = client.post("/recipes", json=recipe_payload(grinder="   "))
    assert res.status_code == 201
    stored = asyncio.run(db.recipes.find_one({"_id": ObjectId(res.json()["data"]["_id"])}))
    assert stored["grinder"] is None

def test_new_documents_get_timezone_aware_timestamps():
    review = ReviewDoc(title="Great cup", content="Juicy", rating=4, username="reviewer", email="hash")
    assert review.date.tzinfo is not None
    assert review.date.utcoffset() == timedelta(0)
