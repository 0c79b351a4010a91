"""
Tests for the settings module
"""

from sqlalchemy.orm import Session

from app.modules.settings.service import SettingsService


class TestBusinessDaySettings:

    def test_defaults_from_configuration(self, db_session: Session):
        assert SettingsService(db_session).get_cutoff() == (0, 0)

    def test_read_defaults(self, client, staff_headers):
        response = client.get("/api/v1/settings/business-day", headers=staff_headers)

        assert response.status_code == 200
        assert response.json()["is_default"] is True
        assert response.json()["timezone"] == "UTC"

    def test_owner_updates_cutoff(self, client, owner_id, owner_headers, db_session: Session):
        response = client.put(
            "/api/v1/settings/business-day",
            json={"day_end_hour": 15, "day_end_minute": 30},
            headers=owner_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["day_end_hour"] == 15
        assert data["day_end_minute"] == 30
        assert data["is_default"] is False
        assert data["updated_by"] == str(owner_id)
        assert SettingsService(db_session).get_cutoff() == (15, 30)

    def test_manager_cannot_update(self, client, manager_headers):
        response = client.put(
            "/api/v1/settings/business-day",
            json={"day_end_hour": 15},
            headers=manager_headers
        )

        assert response.status_code == 403

    def test_hour_out_of_range(self, client, owner_headers):
        response = client.put(
            "/api/v1/settings/business-day",
            json={"day_end_hour": 24},
            headers=owner_headers
        )

        assert response.status_code == 422
