from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from servicedesk.api import deps
from servicedesk.main import create_app
from servicedesk.services.media.media_store import LocalMediaStore


@pytest.fixture
def media(tmp_path):
    return LocalMediaStore(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def api(session_factory, clock, settings, media):
    app = create_app(settings, create_tables=False)

    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[deps.get_db] = override_db
    app.dependency_overrides[deps.get_clock] = lambda: clock
    app.dependency_overrides[deps.get_app_settings] = lambda: settings
    app.dependency_overrides[deps.get_media_store] = lambda: media
    return TestClient(app)


def actor(user):
    return {"X-Actor-Role": user.role.value, "X-Actor-Id": user.id}


@pytest.fixture
def filed(api, client_user):
    response = api.post(
        "/api/v1/complaints",
        json={"title": "Door jammed", "description": "Back door will not close", "store_name": "Kharadi"},
        headers=actor(client_user),
    )
    assert response.status_code == 201
    return response.json()["complaint"]


class TestComplaintEndpoints:
    def test_create_returns_pending_complaint(self, filed, client_user):
        assert filed["complaint_id"] == "CMP-KHA-000001"
        assert filed["status"] == "pending"
        assert filed["priority"] == "medium"
        assert filed["creator"] == {"type": "client", "ref": client_user.id}
        assert filed["created_at"].startswith("2024-01-10T09:00:00")

    def test_full_flow_over_http(self, api, filed, admin, technician, clock):
        reference = filed["complaint_id"]

        assigned = api.post(
            f"/api/v1/complaints/{reference}/assign",
            json={"technician_id": technician.id},
            headers=actor(admin),
        )
        assert assigned.status_code == 200
        assert assigned.json()["complaint"]["assigned_by_id"] == admin.id

        started = api.post(f"/api/v1/complaints/{reference}/start", json={"technician_id": technician.id})
        assert started.json()["complaint"]["status"] == "in-progress"

        clock.set(datetime(2024, 2, 1, 9, 0, tzinfo=timezone.utc))
        resolved = api.post(
            f"/api/v1/complaints/{reference}/resolve",
            json={
                "technician_id": technician.id,
                "resolution_notes": "Replaced hinge",
                "materials_used": "Hinge x1",
            },
        )
        assert resolved.status_code == 200
        assert resolved.json()["complaint"]["status"] == "resolved"

        listed = api.get("/api/v1/complaints", headers=actor(technician))
        assert listed.json()["count"] == 1

    def test_resolve_by_wrong_technician_is_403(self, api, filed, admin, technician, other_technician):
        reference = filed["complaint_id"]
        api.post(f"/api/v1/complaints/{reference}/assign", json={"technician_id": technician.id}, headers=actor(admin))
        api.post(f"/api/v1/complaints/{reference}/start", json={"technician_id": technician.id})

        response = api.post(
            f"/api/v1/complaints/{reference}/resolve",
            json={"technician_id": other_technician.id, "resolution_notes": "x", "materials_used": "y"},
        )

        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "FORBIDDEN"
        assert api.get(f"/api/v1/complaints/{reference}").json()["complaint"]["status"] == "in-progress"

    def test_invalid_transition_is_409(self, api, filed, technician):
        response = api.post(f"/api/v1/complaints/{filed['complaint_id']}/start", json={"technician_id": technician.id})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

    def test_only_admins_assign(self, api, filed, client_user, technician):
        response = api.post(
            f"/api/v1/complaints/{filed['complaint_id']}/assign",
            json={"technician_id": technician.id},
            headers=actor(client_user),
        )
        assert response.status_code == 403

    def test_unknown_complaint_is_404(self, api):
        assert api.get("/api/v1/complaints/CMP-XXX-000001").status_code == 404

    def test_edit_and_delete(self, api, filed, client_user):
        reference = filed["complaint_id"]
        edited = api.patch(f"/api/v1/complaints/{reference}", json={"priority": "urgent"}, headers=actor(client_user))
        assert edited.json()["complaint"]["priority"] == "urgent"

        deleted = api.delete(f"/api/v1/complaints/{reference}", headers=actor(client_user))
        assert deleted.json()["success"] is True
        assert api.get(f"/api/v1/complaints/{reference}").status_code == 404

    def test_technician_filed_complaint_reports_auto_assign(self, api, technician):
        response = api.post(
            "/api/v1/complaints",
            json={"title": "Leak", "description": "Pipe leak", "location": "Wakad"},
            headers=actor(technician),
        )
        assert response.status_code == 201
        assert response.json()["auto_assign"] == {"assigned": False, "reason": "missing_default_phone"}


class TestPhotoEndpoints:
    def upload(self, api, user, name="proof.jpg"):
        return api.post(
            "/api/v1/complaints/photos",
            files={"file": (name, b"\xff\xd8\xff\xe0", "image/jpeg")},
            headers=actor(user),
        )

    def test_upload_returns_reference(self, api, media, client_user):
        response = self.upload(api, client_user)

        assert response.status_code == 201
        photo = response.json()["photo"]
        assert photo["url"] == f"/uploads/{photo['stored_id']}"
        assert media.exists(photo["stored_id"])

    def test_upload_rejects_non_images(self, api, client_user):
        response = self.upload(api, client_user, name="notes.txt")
        assert response.status_code == 422

    def test_removed_photo_is_forgotten(self, api, media, client_user):
        kept, dropped = (self.upload(api, client_user).json()["photo"] for _ in range(2))
        created = api.post(
            "/api/v1/complaints",
            json={"title": "Leak", "description": "Ceiling leak", "store_name": "Wakad", "photos": [kept, dropped]},
            headers=actor(client_user),
        ).json()["complaint"]

        edited = api.patch(
            f"/api/v1/complaints/{created['complaint_id']}",
            json={"removed_photo_ids": [dropped["stored_id"]]},
            headers=actor(client_user),
        )

        assert edited.status_code == 200
        assert [p["stored_id"] for p in edited.json()["complaint"]["photos"]] == [kept["stored_id"]]
        assert not media.exists(dropped["stored_id"])
        assert media.exists(kept["stored_id"])

    def test_deleted_complaint_forgets_its_photos(self, api, media, client_user):
        photo = self.upload(api, client_user).json()["photo"]
        created = api.post(
            "/api/v1/complaints",
            json={"title": "Leak", "description": "Ceiling leak", "store_name": "Wakad", "photos": [photo]},
            headers=actor(client_user),
        ).json()["complaint"]

        response = api.delete(f"/api/v1/complaints/{created['complaint_id']}", headers=actor(client_user))

        assert response.json()["forgotten_photos"] == [photo]
        assert not media.exists(photo["stored_id"])


class TestUserEndpoints:
    def test_delete_technician_with_active_work_is_409(self, api, filed, admin, technician):
        api.post(
            f"/api/v1/complaints/{filed['complaint_id']}/assign",
            json={"technician_id": technician.id},
            headers=actor(admin),
        )

        response = api.delete(f"/api/v1/technicians/{technician.id}", headers=actor(admin))

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ACTIVE_WORK_EXISTS"
        workload = api.get(f"/api/v1/technicians/{technician.id}/workload").json()["stats"]
        assert workload["assigned"] == 1


class TestStatsEndpoints:
    def test_created_vs_resolved_echoes_range(self, api, filed):
        response = api.get(
            "/api/v1/stats/complaints/created-vs-resolved",
            params={"interval": "month", "from": "2024-01-01", "to": "2024-03-01", "tz": "UTC"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["range"] == {
            "interval": "month",
            "timezone": "UTC",
            "from": "2024-01-01T00:00:00+00:00",
            "to": "2024-03-01T00:00:00+00:00",
        }
        assert body["data"] == [
            {"period": "2024-01", "created": 1, "resolved": 0},
            {"period": "2024-02", "created": 0, "resolved": 0},
        ]

    def test_default_range_is_current_month(self, api, filed):
        body = api.get("/api/v1/stats/complaints/created-vs-resolved").json()
        assert body["range"]["from"] == "2024-01-01T00:00:00+00:00"
        assert body["data"] == [{"period": "2024-01", "created": 1, "resolved": 0}]

    def test_invalid_interval_is_422(self, api):
        response = api.get("/api/v1/stats/complaints/created-vs-resolved", params={"interval": "week"})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_FORMAT"

    def test_unknown_timezone_is_422(self, api):
        response = api.get("/api/v1/stats/technicians/assigned-vs-resolved", params={"tz": "Atlantis/Capital"})
        assert response.status_code == 422

    def test_date_beyond_the_calendar_is_422(self, api):
        response = api.get(
            "/api/v1/stats/complaints/created-vs-resolved",
            params={"from": "0001-01-01", "tz": "Asia/Kolkata"},
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_FORMAT"

    def test_inverted_range_is_empty_not_an_error(self, api, filed):
        response = api.get(
            "/api/v1/stats/complaints/created-vs-resolved",
            params={"interval": "day", "from": "2024-02-01", "to": "2024-01-01"},
        )
        assert response.status_code == 200
        assert response.json()["data"] == []

    @pytest.mark.parametrize(
        "path",
        [
            "technicians/assigned-vs-resolved",
            "complaints/status-funnel",
            "complaints/store-leaderboard",
            "complaints/time-to-resolve",
            "complaints/aging",
        ],
    )
    def test_dashboard_endpoints_respond(self, api, filed, path):
        response = api.get(f"/api/v1/stats/{path}", params={"from": "2024-01-01", "to": "2024-02-01"})
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_store_leaderboard_payload(self, api, filed):
        body = api.get(
            "/api/v1/stats/complaints/store-leaderboard", params={"from": "2024-01-01", "to": "2024-02-01"}
        ).json()
        assert "interval" not in body["range"]
        assert body["data"] == [{"store_name": "Kharadi", "total": 1, "resolved": 0, "unresolved": 1}]


class TestAssetRecordEndpoints:
    def test_submit_and_list(self, api, technician, admin):
        created = api.post(
            "/api/v1/asset-records",
            json={"store_name": "Aundh", "equipment": [{"name": "Chiller", "is_present": True, "count": 1}]},
            headers=actor(technician),
        )
        assert created.status_code == 201

        listed = api.get("/api/v1/asset-records", params={"store_name": "aundh"})
        assert listed.json()["count"] == 1

        forbidden = api.post("/api/v1/asset-records", json={"store_name": "Aundh"}, headers=actor(admin))
        assert forbidden.status_code == 403
