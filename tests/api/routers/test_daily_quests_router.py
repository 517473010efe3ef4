"""
Integration tests for the daily quests router.

Tests all endpoints in api/routers/daily_quests.py:
- GET /daily-progress: Today's quests, after the daily reset check
- POST /daily-progress/quests/{quest}: Toggle a quest
- POST /streak-freeze/use: Spend a streak freeze
"""

import pytest
from fastapi.testclient import TestClient

from tests.fakes.conftest import TEST_USER_ID

TODAY = "2024-01-15"
YESTERDAY = "2024-01-14"


@pytest.fixture
def client(app):
    return TestClient(app)


# =============================================================================
# GET /daily-progress
# =============================================================================


@pytest.mark.integration
class TestGetDailyProgress:

    def test_first_visit(self, client, fake_user_repo, fake_daily_repo):
        fake_user_repo.seed([{"id": TEST_USER_ID}])

        response = client.get("/daily-progress")

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == TODAY
        assert data["completed_quests"] == 0
        assert data["reset_applied"] is False
        assert data["next_reset_at"].startswith("2024-01-16T00:00:00")
        assert fake_daily_repo.rows_for(TEST_USER_ID) == []

    def test_new_day_resets(self, client, fake_user_repo, fake_daily_repo):
        fake_user_repo.seed([{"id": TEST_USER_ID}])
        fake_daily_repo.seed([{"user_id": TEST_USER_ID, "date": YESTERDAY, "hydration": True}])

        data = client.get("/daily-progress").json()

        assert data["reset_applied"] is True
        assert data["hydration"] is False
        assert client.get("/daily-progress").json()["reset_applied"] is False

    def test_missed_day_spends_freeze(self, client, fake_user_repo, fake_daily_repo):
        fake_user_repo.seed([{
            "id": TEST_USER_ID,
            "current_streak": 6,
            "last_streak_date": "2024-01-13",
            "streak_freeze_count": 1,
        }])
        fake_daily_repo.seed([{"user_id": TEST_USER_ID, "date": "2024-01-13"}])

        client.get("/daily-progress")

        user = fake_user_repo.get_user(TEST_USER_ID)
        assert user.streak_freeze_count == 0
        assert user.current_streak == 6

    def test_user_timezone(self, client, fake_user_repo):
        fake_user_repo.seed([{"id": TEST_USER_ID, "timezone": "Pacific/Kiritimati"}])

        # UTC+14: 12:00 UTC is already the next day
        assert client.get("/daily-progress").json()["date"] == "2024-01-16"

    def test_unknown_user(self, client):
        assert client.get("/daily-progress").status_code == 404


# =============================================================================
# POST /daily-progress/quests/{quest}
# =============================================================================


@pytest.mark.integration
class TestToggleQuest:

    def test_toggle_on(self, client, fake_user_repo):
        fake_user_repo.seed([{"id": TEST_USER_ID}])

        response = client.post("/daily-progress/quests/hydration", json={})

        assert response.status_code == 200
        data = response.json()
        assert data["progress"]["hydration"] is True
        assert data["xp_awarded"] == 0

    def test_toggle_off(self, client, fake_user_repo):
        fake_user_repo.seed([{"id": TEST_USER_ID}])
        client.post("/daily-progress/quests/sleep", json={})

        data = client.post("/daily-progress/quests/sleep", json={"completed": False}).json()
        assert data["progress"]["sleep"] is False

    def test_all_quests_award_bonus(self, client, fake_user_repo):
        fake_user_repo.seed([{"id": TEST_USER_ID}])
        for quest in ("hydration", "steps", "protein"):
            client.post(f"/daily-progress/quests/{quest}", json={})

        data = client.post("/daily-progress/quests/sleep", json={}).json()

        assert data["xp_awarded"] == 25
        assert data["streak_freeze_awarded"] is True
        assert data["progress"]["completed_quests"] == 4
        user = fake_user_repo.get_user(TEST_USER_ID)
        assert user.experience == 25
        assert user.current_streak == 1

    def test_unknown_quest(self, client, fake_user_repo):
        fake_user_repo.seed([{"id": TEST_USER_ID}])
        assert client.post("/daily-progress/quests/meditation", json={}).status_code == 400

    def test_unknown_user(self, client):
        assert client.post("/daily-progress/quests/steps", json={}).status_code == 404


# =============================================================================
# POST /streak-freeze/use
# =============================================================================


@pytest.mark.integration
class TestUseStreakFreeze:

    def test_spends_freeze(self, client, fake_user_repo):
        fake_user_repo.seed([{"id": TEST_USER_ID, "streak_freeze_count": 2, "current_streak": 5}])

        response = client.post("/streak-freeze/use")

        assert response.status_code == 200
        assert response.json() == {"used": True, "streak_freeze_count": 1, "current_streak": 5}

    def test_none_available(self, client, fake_user_repo):
        fake_user_repo.seed([{"id": TEST_USER_ID}])
        assert client.post("/streak-freeze/use").status_code == 409

    def test_unknown_user(self, client):
        assert client.post("/streak-freeze/use").status_code == 404
