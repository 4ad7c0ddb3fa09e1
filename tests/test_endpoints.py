"""
Integration tests for API endpoints using SQLite in-memory DB.
"""
import httpx
import pytest

from curbcarbon.core.deps import get_http_client
from curbcarbon.main import app
from curbcarbon.services.store import SqlKeyValueStore, StoreKey

STREAMING = {"platform": "www.youtube.com", "totalMB": 500, "videoMB": 450, "timeActive": 10}


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestEvents:
    def test_record_event(self, client):
        r = client.post("/events", json=STREAMING)
        assert r.status_code == 201
        body = r.json()
        assert body["type"] == "media"
        assert body["platform"] == "www.youtube.com"
        assert body["carbonGrams"] == pytest.approx(5.30, abs=0.02)
        assert body["data"]["totalMB"] == 500
        assert body["data"]["gridMultiplier"] is None

    def test_snake_case_fields_accepted(self, client):
        r = client.post("/events", json={"platform": "docs.python.org", "total_mb": 1024})
        assert r.status_code == 201
        assert r.json()["carbonGrams"] == 7.6

    def test_intensity_override(self, client):
        r = client.post("/events", json={**STREAMING, "carbonIntensity": 950})
        assert r.status_code == 201
        assert r.json()["data"]["gridMultiplier"] == 2.0

    def test_list_today(self, client):
        client.post("/events", json=STREAMING)
        client.post("/events", json={"platform": "www.etsy.com", "totalMB": 50})
        r = client.get("/events", params={"range": "today"})
        assert r.status_code == 200
        body = r.json()
        assert body["total"] == 2
        assert [i["type"] for i in body["items"]] == ["media", "shopping"]

    def test_old_events_outside_today(self, client):
        client.post("/events", json={**STREAMING, "timestamp": 1_000})
        assert client.get("/events").json()["total"] == 0


class TestSummary:
    def test_empty_today(self, client):
        r = client.get("/summary/today")
        assert r.status_code == 200
        body = r.json()
        assert body["total_carbon"] == 0
        assert body["by_category"] == {"media": 0, "shopping": 0, "browsing": 0}
        assert "No browsing" in body["insight"]

    def test_today_reconciles_with_events(self, client):
        a = client.post("/events", json=STREAMING).json()
        b = client.post("/events", json={"platform": "www.amazon.com", "totalMB": 200}).json()
        body = client.get("/summary/today").json()
        assert body["total_carbon"] == pytest.approx(a["carbonGrams"] + b["carbonGrams"])
        assert body["by_platform"]["www.amazon.com"] == b["carbonGrams"]
        assert body["equivalencies"]["miles_driven"] >= 0

    def test_range(self, client):
        client.post("/events", json=STREAMING)
        r = client.get("/summary/range", params={"range": "month"})
        assert r.status_code == 200
        body = r.json()
        assert body["event_count"] == 1
        assert body["by_category"]["media"] == body["total_carbon"]
        assert body["start"] < body["end"]


class TestGrid:
    def test_baseline_without_token(self, client):
        r = client.get("/grid")
        assert r.status_code == 200
        body = r.json()
        assert body["intensity"] == 475
        assert body["is_baseline"] is True

    def test_unreachable_api_with_token_is_baseline(self, client):
        client.put("/settings/grid-token", json={"token": "abc"})
        body = client.get("/grid").json()
        assert body["is_baseline"] is True

    def test_location_name_is_null_without_known_location(self, client):
        assert client.get("/grid").json()["location_name"] is None

    def test_location_name_from_known_location(self, client, db):
        SqlKeyValueStore(db).put(
            StoreKey.LAST_KNOWN_LOCATION,
            {"lat": 48.85, "lon": 2.35, "updatedAt": 1_700_000_000_000},
        )

        def handler(request: httpx.Request) -> httpx.Response:
            if "nominatim" in request.url.host:
                return httpx.Response(200, json={
                    "address": {"city": "Paris", "state": "Ile-de-France", "country": "France"},
                })
            return httpx.Response(503)

        async def geocoding_client():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as c:
                yield c

        app.dependency_overrides[get_http_client] = geocoding_client
        body = client.get("/grid").json()
        assert body["location_name"] == "Paris, Ile-de-France, France"
        assert body["is_baseline"] is True


class TestGoal:
    def test_get_without_goal(self, client):
        assert client.get("/goal").status_code == 404

    def test_set_by_preset(self, client):
        r = client.put("/goal", json={"preset": "eco_warrior"})
        assert r.status_code == 200
        assert r.json()["amount"] == 350
        assert client.get("/goal").json()["period"] == "week"

    def test_progress(self, client):
        client.put("/goal", json={"amount": 10})
        client.post("/events", json=STREAMING)
        r = client.get("/goal/progress")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "great"
        assert body["remaining"] == pytest.approx(10 - body["current"], abs=0.01)

    def test_progress_over(self, client):
        client.put("/goal", json={"amount": 1})
        client.post("/events", json=STREAMING)
        body = client.get("/goal/progress").json()
        assert body["status"] == "over"
        assert body["percentage"] == 100

    def test_history_after_first_goal(self, client):
        client.put("/goal", json={"amount": 500})
        body = client.get("/goal/history").json()
        assert body["last_period_start"] is not None
        assert body["current_streak"] == 0
        assert body["total_achieved"] == 0


class TestInsights:
    def test_achievements_after_goal(self, client):
        client.put("/goal", json={"preset": "eco_warrior"})
        body = client.get("/insights/achievements").json()
        assert [a["id"] for a in body["earned"]] == ["first_step", "eco_warrior"]
        assert all(a["unlocked_at"] for a in body["earned"])
        # unlocked while setting the goal
        assert body["newly_unlocked"] == []

    def test_achievements_empty(self, client):
        body = client.get("/insights/achievements").json()
        assert body == {"earned": [], "newly_unlocked": []}

    def test_recommendations_never_empty(self, client):
        client.put("/goal", json={"amount": 500})
        body = client.get("/insights/recommendations").json()
        assert body["items"][0]["id"] == "all_clear"

    def test_recommendations_without_goal(self, client):
        ids = [i["id"] for i in client.get("/insights/recommendations").json()["items"]]
        assert "set_goal" in ids


class TestSettings:
    def test_default_device(self, client):
        body = client.get("/settings/device").json()
        assert body["device_type"] == "auto"
        assert body["resolved_device"] == "laptop"
        assert body["watts"] == 20

    def test_set_device_changes_estimates(self, client):
        r = client.put("/settings/device", json={"device_type": "tv"})
        assert r.status_code == 200
        assert r.json()["watts"] == 100
        event = client.post("/events", json={"platform": "www.netflix.com", "timeActive": 60}).json()
        assert event["carbonGrams"] == 47.5

    def test_grid_token(self, client):
        r = client.put("/settings/grid-token", json={"token": "  secret  "})
        assert r.status_code == 200
        assert r.json() == {"configured": True}
