from unittest.mock import patch

from fastapi.testclient import TestClient

from backend.app import app
from backend.auth.users import register_user
from backend.recommendations.models import UserPreferences
from backend.tracking.models import UserProfile
from backend.tracking.store import clear_meal_logs, save_preferences, save_profile

client = TestClient(app)

MENU_DATE = "2025-01-15"


def _login(c, username="user", password="user123"):
    c.post("/auth/login", json={"username": username, "password": password})


def _lunch(c, **params):
    params.setdefault("date", MENU_DATE)
    return c.get("/recommendations/meal/lunch", params=params)


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_meal_recommendations_returns_results():
    clear_meal_logs()
    _login(client)
    resp = _lunch(client)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["date"] == MENU_DATE
    assert body["meal_period"] == "lunch"
    assert body["remaining_macros"]["calories"] == 2200
    assert len(body["recommendations"]) == 5


def test_meal_recommendations_shape():
    clear_meal_logs()
    _login(client)
    rec = _lunch(client).json()["recommendations"][0]
    assert set(rec) == {"item", "score", "breakdown", "reasoning"}
    assert set(rec["breakdown"]) == {
        "macro_score", "preference_score", "variety_score", "availability_score",
    }
    assert rec["item"]["nutrition"] is not None
    assert isinstance(rec["reasoning"], list)


def test_meal_recommendations_skip_items_without_nutrition():
    clear_meal_logs()
    _login(client)
    body = _lunch(client, limit=50).json()
    ids = {rec["item"]["id"] for rec in body["recommendations"]}
    assert ids == {"1", "2", "3", "4", "5", "7"}


def test_recommendations_respects_limit():
    _login(client)
    resp = _lunch(client, limit=2)
    assert len(resp.json()["recommendations"]) == 2


def test_recommendations_score_ordering():
    _login(client)
    body = _lunch(client, limit=10).json()
    scores = [rec["score"] for rec in body["recommendations"]]
    assert scores == sorted(scores, reverse=True)


def test_unknown_dining_hall_lowers_availability():
    clear_meal_logs()
    _login(client)
    body = _lunch(client, limit=10).json()
    turkey = next(rec for rec in body["recommendations"] if rec["item"]["id"] == "7")
    assert turkey["breakdown"]["availability_score"] == 50
    assert "Availability unknown" in turkey["reasoning"]


@patch("backend.app.today_iso", return_value=MENU_DATE)
def test_logged_meals_lower_variety(mock_today):
    clear_meal_logs()
    _login(client)
    for _ in range(3):
        assert client.post("/meals/log", json={"menu_item_id": "1"}).status_code == 201

    body = _lunch(client, limit=10).json()
    by_id = {rec["item"]["id"]: rec for rec in body["recommendations"]}
    assert by_id["1"]["breakdown"]["variety_score"] == 50
    assert "Eaten 3x this week" in by_id["1"]["reasoning"]
    # "Chicken Alfredo Pasta" shares a word with "Grilled Chicken Breast"
    assert by_id["2"]["breakdown"]["variety_score"] == 70
    assert by_id["3"]["breakdown"]["variety_score"] == 100
    clear_meal_logs()


def test_past_day_ignores_meals_logged_later():
    clear_meal_logs()
    _login(client)
    client.post("/meals/log", json={"menu_item_id": "1"})

    body = _lunch(client, limit=10).json()
    chicken = next(rec for rec in body["recommendations"] if rec["item"]["id"] == "1")
    assert chicken["breakdown"]["variety_score"] == 100
    clear_meal_logs()


def test_allergic_user_never_sees_allergen():
    register_user("allergic", "allergic123")
    save_profile(UserProfile(user_id="allergic", target_calories=1800))
    save_preferences("allergic", UserPreferences(allergies=["wheat"]))

    c = TestClient(app)
    _login(c, "allergic", "allergic123")
    body = _lunch(c, limit=50).json()
    ids = {rec["item"]["id"] for rec in body["recommendations"]}
    assert ids == {"1", "3"}


def test_invalid_meal_period():
    _login(client)
    resp = client.get("/recommendations/meal/supper", params={"date": MENU_DATE})
    assert resp.status_code == 400


def test_invalid_date():
    _login(client)
    resp = _lunch(client, date="15/01/2025")
    assert resp.status_code == 400


def test_no_menu_for_date():
    _login(client)
    resp = _lunch(client, date="2030-01-01")
    assert resp.status_code == 404


def test_validation_rejects_bad_limit():
    _login(client)
    assert _lunch(client, limit=0).status_code == 422
    assert _lunch(client, limit=51).status_code == 422


def test_missing_profile_is_not_found():
    c = TestClient(app)
    _login(c, "admin", "admin123")
    resp = _lunch(c)
    assert resp.status_code == 404
    assert "onboarding" in resp.json()["detail"]


def test_missing_preferences_is_not_found():
    register_user("halfway", "halfway123")
    save_profile(UserProfile(user_id="halfway"))

    c = TestClient(app)
    _login(c, "halfway", "halfway123")
    resp = _lunch(c)
    assert resp.status_code == 404
    assert "preferences" in resp.json()["detail"].lower()


@patch("backend.app.today_iso", return_value=MENU_DATE)
def test_recommendations_now_uses_today(mock_today):
    clear_meal_logs()
    _login(client)
    resp = client.get("/recommendations/now")
    assert resp.status_code == 200
    body = resp.json()
    assert body["date"] == MENU_DATE
    assert body["meal_period"] is None
    assert len(body["recommendations"]) == 5


@patch("backend.app.today_iso", return_value=MENU_DATE)
def test_recommendations_now_covers_all_meal_periods(mock_today):
    _login(client)
    body = client.get("/recommendations/now", params={"limit": 50}).json()
    ids = {rec["item"]["id"] for rec in body["recommendations"]}
    assert {"8", "11", "12"} <= ids
    assert "13" not in ids


def test_recommendations_requires_login():
    c = TestClient(app)
    assert c.get("/recommendations/now").status_code == 401
    assert c.get("/recommendations/meal/lunch").status_code == 401
