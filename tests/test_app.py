"""
Tests for the FastAPI web application.
"""

import sqlite3
from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.app import app


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point the app's storage at a temporary database."""
    path = tmp_path / "stepie.db"
    monkeypatch.setenv("STEPIE_DB_PATH", str(path))
    return path


@pytest.fixture
def client(db_path):
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def diet_payload():
    return {
        "date": "2024-06-10",
        "mealType": "lunch",
        "foodItem": "Chicken salad",
        "calories": 450,
        "protein": 35,
    }


@pytest.fixture
def workout_payload():
    return {
        "date": "2024-06-10",
        "workoutType": "cardio",
        "duration": 30,
        "caloriesBurned": 250,
    }


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_ok(self, client):
        """Health endpoint should return status ok."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestWeightEndpoints:
    """Tests for the /api/weight_entries endpoints."""

    def test_list_empty(self, client):
        response = client.get("/api/weight_entries")

        assert response.status_code == 200
        assert response.json() == []

    def test_create_entry(self, client):
        response = client.post("/api/weight_entries", json={"weight": 182.4, "date": "2024-06-15"})

        assert response.status_code == 201
        data = response.json()
        assert data["id"] is not None
        assert data["weight"] == 182.4
        assert data["date"] == "2024-06-15"
        assert data["user_id"] == 1

    def test_create_requires_weight_and_date(self, client):
        response = client.post("/api/weight_entries", json={"date": "2024-06-15"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Weight and date are required"

        response = client.post("/api/weight_entries", json={"weight": 180})
        assert response.status_code == 400

    def test_list_returns_entries_oldest_first(self, client):
        client.post("/api/weight_entries", json={"weight": 181, "date": "2024-06-15"})
        client.post("/api/weight_entries", json={"weight": 183, "date": "2024-06-01"})

        data = client.get("/api/weight_entries").json()

        assert [e["date"] for e in data] == ["2024-06-01", "2024-06-15"]

    def test_list_filters_by_user(self, client):
        client.post("/api/weight_entries", json={"weight": 181, "date": "2024-06-15"})
        client.post("/api/weight_entries", json={"user_id": 2, "weight": 140, "date": "2024-06-15"})

        assert len(client.get("/api/weight_entries").json()) == 1
        data = client.get("/api/weight_entries", params={"user_id": 2}).json()
        assert data[0]["weight"] == 140

    def test_update_entry(self, client):
        created = client.post("/api/weight_entries", json={"weight": 181, "date": "2024-06-15"}).json()

        response = client.put(
            f"/api/weight_entries/{created['id']}", json={"weight": 179.5, "date": "2024-06-16"}
        )

        assert response.status_code == 200
        assert response.json()["weight"] == 179.5
        assert response.json()["date"] == "2024-06-16"

    def test_update_missing_entry(self, client):
        response = client.put("/api/weight_entries/999", json={"weight": 180, "date": "2024-06-15"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Entry not found"

    def test_update_requires_weight_and_date(self, client):
        response = client.put("/api/weight_entries/1", json={"weight": 180})

        assert response.status_code == 400

    def test_delete_entry(self, client):
        created = client.post("/api/weight_entries", json={"weight": 181, "date": "2024-06-15"}).json()

        response = client.delete(f"/api/weight_entries/{created['id']}")
        assert response.status_code == 204

        response = client.delete(f"/api/weight_entries/{created['id']}")
        assert response.status_code == 404


class TestDietEndpoints:
    """Tests for the /api/diet_entries endpoints."""

    def test_create_entry_with_defaults(self, client):
        response = client.post(
            "/api/diet_entries",
            json={"date": "2024-06-10", "foodItem": "Banana", "calories": 105},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["mealType"] == "breakfast"
        assert data["protein"] == 0
        assert data["fat"] == 0

    def test_create_requires_food_calories_and_date(self, client):
        response = client.post("/api/diet_entries", json={"date": "2024-06-10", "calories": 100})

        assert response.status_code == 400
        assert "required" in response.json()["detail"]

    def test_zero_calories_is_allowed(self, client):
        response = client.post(
            "/api/diet_entries",
            json={"date": "2024-06-10", "foodItem": "Water", "calories": 0},
        )

        assert response.status_code == 201

    def test_list_with_date_filters(self, client, diet_payload):
        for day in ("2024-06-01", "2024-06-10", "2024-06-20"):
            client.post("/api/diet_entries", json={**diet_payload, "date": day})

        response = client.get(
            "/api/diet_entries", params={"start_date": "2024-06-05", "end_date": "2024-06-15"}
        )

        assert response.status_code == 200
        assert [e["date"] for e in response.json()] == ["2024-06-10"]

    def test_partial_update(self, client, diet_payload):
        created = client.post("/api/diet_entries", json=diet_payload).json()

        response = client.put(f"/api/diet_entries/{created['id']}", json={"calories": 500})

        assert response.status_code == 200
        data = response.json()
        assert data["calories"] == 500
        assert data["foodItem"] == "Chicken salad"
        assert data["protein"] == 35

    def test_update_missing_entry(self, client):
        response = client.put("/api/diet_entries/999", json={"calories": 500})

        assert response.status_code == 404

    def test_delete_entry(self, client, diet_payload):
        created = client.post("/api/diet_entries", json=diet_payload).json()

        assert client.delete(f"/api/diet_entries/{created['id']}").status_code == 204
        assert client.get("/api/diet_entries").json() == []


class TestWorkoutEndpoints:
    """Tests for the /api/workout_entries endpoints."""

    def test_create_entry_with_defaults(self, client, workout_payload):
        response = client.post("/api/workout_entries", json=workout_payload)

        assert response.status_code == 201
        data = response.json()
        assert data["intensity"] == "medium"
        assert data["notes"] == ""
        assert data["caloriesBurned"] == 250

    def test_create_requires_type_duration_and_date(self, client):
        response = client.post("/api/workout_entries", json={"date": "2024-06-10", "duration": 30})

        assert response.status_code == 400

    def test_partial_update(self, client, workout_payload):
        created = client.post("/api/workout_entries", json=workout_payload).json()

        response = client.put(
            f"/api/workout_entries/{created['id']}",
            json={"intensity": "high", "notes": "Intervals"},
        )

        data = response.json()
        assert data["intensity"] == "high"
        assert data["notes"] == "Intervals"
        assert data["duration"] == 30

    def test_list_with_start_date(self, client, workout_payload):
        client.post("/api/workout_entries", json={**workout_payload, "date": "2024-05-01"})
        client.post("/api/workout_entries", json=workout_payload)

        data = client.get("/api/workout_entries", params={"start_date": "2024-06-01"}).json()

        assert len(data) == 1
        assert data[0]["date"] == "2024-06-10"

    def test_delete_missing_entry(self, client):
        assert client.delete("/api/workout_entries/999").status_code == 404


class TestGoalEndpoints:
    """Tests for the /api/user_goals endpoints."""

    def test_get_goals_returns_null_when_unset(self, client):
        response = client.get("/api/user_goals")

        assert response.status_code == 200
        assert response.json() is None

    def test_create_then_update_goals(self, client):
        response = client.post(
            "/api/user_goals",
            json={"targetWeight": 175, "additionalGoals": [{"name": "Run 5k"}]},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["targetWeight"] == 175
        assert data["stepSize"] == 5
        assert data["weight_unit"] == "lbs"
        assert data["additionalGoals"] == [{"name": "Run 5k"}]

        response = client.post("/api/user_goals", json={"targetWeight": 170, "weight_unit": "kg"})

        assert response.status_code == 200
        assert response.json()["targetWeight"] == 170
        assert response.json()["additionalGoals"] == []

    def test_get_goals_decodes_additional_goals(self, client):
        client.post("/api/user_goals", json={"targetWeight": 175, "additionalGoals": ["sleep 8h"]})

        data = client.get("/api/user_goals").json()

        assert data["additionalGoals"] == ["sleep 8h"]

    def test_invalid_unit_rejected(self, client):
        response = client.post("/api/user_goals", json={"targetWeight": 175, "weight_unit": "stone"})

        assert response.status_code == 422


class TestHeatmapEndpoint:
    """Tests for the /api/heatmap endpoint."""

    def test_empty_heatmap(self, client):
        response = client.get("/api/heatmap")

        assert response.status_code == 200
        data = response.json()
        assert data["period"]["end"] == date.today().isoformat()
        assert data["total_entries"] == 0
        assert data["max_count"] == 0
        assert data["columns"]
        assert data["month_labels"][0]["column"] == 0

    def test_counts_entries_of_every_kind(self, client, diet_payload, workout_payload):
        today = date.today().isoformat()
        client.post("/api/weight_entries", json={"weight": 180, "date": today})
        client.post("/api/diet_entries", json={**diet_payload, "date": today})
        client.post("/api/workout_entries", json={**workout_payload, "date": today})

        data = client.get("/api/heatmap").json()

        assert data["total_entries"] == 3
        assert data["active_days"] == 1
        cells = [day for column in data["columns"] for day in column["days"] if day]
        today_cell = next(cell for cell in cells if cell["date"] == today)
        assert today_cell["types"] == {"weight": 1, "diet": 1, "workout": 1}
        assert today_cell["intensity"] == 3
        assert today_cell["tooltip"].startswith("3 entries on")


class TestProgressEndpoint:
    """Tests for the /api/progress endpoint."""

    def test_progress_with_goal(self, client):
        client.post("/api/weight_entries", json={"weight": 200, "date": "2024-01-01"})
        client.post("/api/weight_entries", json={"weight": 190, "date": "2024-02-01"})
        client.post("/api/user_goals", json={"targetWeight": 180, "stepSize": 5})

        response = client.get("/api/progress")

        assert response.status_code == 200
        data = response.json()
        assert "heatmap" not in data
        assert data["progress"]["start_weight"] == 200
        assert data["progress"]["current_weight"] == 190
        assert data["progress"]["progress_percent"] == 50.0
        assert [g["target"] for g in data["mini_goals"]] == [195, 190, 185, 180]
        assert [g["achieved"] for g in data["mini_goals"]] == [True, True, False, False]
        assert data["weight_unit"] == "lbs"

    def test_progress_without_data(self, client):
        data = client.get("/api/progress").json()

        assert data["progress"]["current_weight"] is None
        assert data["mini_goals"] == []
        assert data["diet_today"]["calories"] == 0


class TestDashboard:
    """Tests for the HTML dashboard."""

    def test_index_renders(self, client):
        client.post("/api/weight_entries", json={"weight": 180, "date": date.today().isoformat()})

        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Stepie" in response.text
        assert "1 entry on" in response.text


class TestDatabaseErrors:
    """Tests for database error handling."""

    @patch("src.app.TrackerStorage")
    def test_database_error_returns_500(self, mock_storage_class, client):
        mock_storage = MagicMock()
        mock_storage_class.return_value = mock_storage
        mock_storage.list_entries.side_effect = sqlite3.OperationalError("database is locked")

        response = client.get("/api/weight_entries")

        assert response.status_code == 500
        assert response.json()["detail"] == "database is locked"
