"""
Integration tests for the Koperasi Governance API
Tests end-to-end meeting workflows using FastAPI TestClient
"""

import pytest
from fastapi.testclient import TestClient

import koperasi.api.auth
from koperasi.api import app
from koperasi.config import KoperasiConfig
from koperasi.system import CooperativeSystem


def _client_for(config):
    test_system = CooperativeSystem(config=config)

    # Replace the global system for testing
    original_system = koperasi.api.auth.cooperative_system
    koperasi.api.auth.cooperative_system = test_system

    yield TestClient(app)

    koperasi.api.auth.cooperative_system = original_system


@pytest.fixture
def client():
    """Test client over a fresh system with the demo meetings loaded"""
    yield from _client_for(KoperasiConfig(seed_demo_data=True, default_locale="id"))


@pytest.fixture
def guarded_client():
    """Test client with role checks switched on"""
    yield from _client_for(KoperasiConfig(seed_demo_data=True, enforce_permissions=True))


def create_meeting(client, **overrides):
    body = {
        "title": "Rapat Anggota Luar Biasa",
        "date": "2025-02-01T10:00:00Z",
        "location": "Aula Koperasi",
        "agenda_items": [
            {"title": "Pembukaan"},
            {"title": "Perubahan AD/ART", "description": "Voting perubahan anggaran dasar",
             "requires_vote": True},
        ],
    }
    body.update(overrides)
    return client.post("/meetings", json=body)


class TestHealthEndpoints:
    """Test basic health and root endpoints"""

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"

    def test_root(self, client):
        r = client.get("/")
        assert r.status_code == 200
        assert r.json()["endpoints"]["meetings"] == "/meetings"


class TestMeetingEndpoints:
    """Meeting CRUD and lifecycle over HTTP"""

    def test_list_meetings(self, client):
        r = client.get("/meetings")
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert [m["id"] for m in body["data"]] == ["1", "3", "2"]

    def test_list_by_status(self, client):
        r = client.get("/meetings", params={"status": "ongoing"})
        assert [m["id"] for m in r.json()["data"]] == ["3"]

    def test_list_by_date_range(self, client):
        r = client.get("/meetings", params={"start_date": "2024-11-01", "end_date": "2024-11-30"})
        assert [m["id"] for m in r.json()["data"]] == ["3"]

    def test_list_invalid_status(self, client):
        r = client.get("/meetings", params={"status": "cancelled"})
        assert r.status_code == 400
        assert r.json()["detail"]["code"] == "validation_failure"

    def test_create_meeting(self, client):
        r = create_meeting(client)
        assert r.status_code == 201
        body = r.json()
        assert body["message"] == "Rapat berhasil dibuat"
        meeting = body["data"]
        assert meeting["id"] == "4"
        assert meeting["status"] == "scheduled"
        assert meeting["date"] == "2025-02-01T10:00:00+00:00"
        assert meeting["agenda_items"][1]["id"] == "agenda-2"
        assert meeting["agenda_items"][1]["vote_state"] == "pending"
        assert meeting["agenda_items"][1]["vote_results"] == {
            "approve": 0, "reject": 0, "abstain": 0, "voters": []
        }
        assert meeting["agenda_items"][0]["vote_results"] is None

    def test_create_meeting_english(self, client):
        r = client.post("/meetings", json={"title": "AGM", "date": "2025-02-01", "location": "Hall"},
                        headers={"Accept-Language": "en-US,en;q=0.9"})
        assert r.json()["message"] == "Meeting created successfully"

    def test_create_meeting_blank_title(self, client):
        r = create_meeting(client, title="  ")
        assert r.status_code == 400
        assert r.json()["detail"] == {
            "success": False,
            "error": "Kolom title wajib diisi",
            "code": "validation_failure",
        }

    def test_create_meeting_bad_date(self, client):
        r = create_meeting(client, date="besok")
        assert r.status_code == 400

    def test_create_meeting_schema_error(self, client):
        r = client.post("/meetings", json={"title": "No date"})
        assert r.status_code == 400
        assert r.json()["detail"] == {
            "success": False,
            "error": "Kolom date wajib diisi",
            "code": "validation_failure",
        }

    def test_create_meeting_wrong_type(self, client):
        r = client.post("/meetings", json={"title": ["x"], "date": "2025-01-01", "location": "Aula"},
                        headers={"Accept-Language": "en"})
        assert r.status_code == 400
        assert r.json()["detail"] == {
            "success": False,
            "error": "Request could not be processed",
            "code": "validation_failure",
        }

    def test_malformed_json(self, client):
        r = client.post("/meetings", content=b"{not json", headers={"Content-Type": "application/json"})
        assert r.status_code == 400
        assert r.json()["detail"]["code"] == "validation_failure"

    def test_create_meeting_camel_case(self, client):
        r = client.post("/meetings", json={
            "title": "Rapat Pengurus", "date": "2025-03-01T09:00:00.000Z", "location": "Kantor",
            "agendaItems": [{"title": "Anggaran", "requiresVote": True}],
        })
        assert r.status_code == 201
        assert r.json()["data"]["agenda_items"][0]["vote_state"] == "pending"

    def test_list_by_camel_case_dates(self, client):
        r = client.get("/meetings", params={
            "startDate": "2024-11-01T00:00:00.000Z", "endDate": "2024-11-30T23:59:59.000Z"
        })
        assert [m["id"] for m in r.json()["data"]] == ["3"]

    def test_request_id_echoed(self, client):
        r = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert r.headers["X-Request-ID"] == "req-42"
        assert client.get("/health").headers["X-Request-ID"]

    def test_get_meeting(self, client):
        r = client.get("/meetings/2")
        assert r.status_code == 200
        assert r.json()["data"]["title"] == "Rapat Evaluasi Triwulan III"

    def test_get_unknown_meeting(self, client):
        r = client.get("/meetings/404")
        assert r.status_code == 404
        assert r.json()["detail"]["error"] == "Rapat tidak ditemukan"
        assert r.json()["detail"]["code"] == "not_found"

    def test_get_unknown_meeting_english(self, client):
        r = client.get("/meetings/404", headers={"Accept-Language": "en"})
        assert r.json()["detail"]["error"] == "Meeting 404 not found"

    def test_update_meeting(self, client):
        r = client.put("/meetings/1", json={"location": "Gedung Serbaguna", "status": "ongoing"})
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["location"] == "Gedung Serbaguna"
        assert data["status"] == "ongoing"
        assert data["title"] == "Rapat Anggota Tahunan 2024"

    def test_update_status_regression(self, client):
        r = client.put("/meetings/3", json={"status": "scheduled"})
        assert r.status_code == 409
        assert r.json()["detail"]["code"] == "invalid_state"

    def test_update_completed_meeting(self, client):
        r = client.put("/meetings/2", json={"title": "Edited"})
        assert r.status_code == 409
        assert r.json()["detail"]["error"] == "Rapat yang sudah selesai tidak dapat diubah"

    def test_replace_agenda_after_votes(self, client):
        r = client.put("/meetings/3", json={"agenda_items": [{"title": "Baru"}]})
        assert r.status_code == 409

    def test_start_meeting(self, client):
        r = client.post("/meetings/1/start")
        assert r.status_code == 200
        assert r.json()["data"]["status"] == "ongoing"

        r = client.post("/meetings/1/start")
        assert r.status_code == 409

    def test_attendance(self, client):
        r = client.post("/meetings/3/attendance", json={"member_ids": ["3", "4"]})
        assert r.status_code == 200
        assert r.json()["data"]["attendees"] == ["1", "2", "3", "4"]
        assert r.json()["message"] == "Kehadiran berhasil dicatat"

    def test_attendance_on_completed_meeting(self, client):
        r = client.post("/meetings/2/attendance", json={"member_ids": ["6"]})
        assert r.status_code == 409

    def test_close_meeting(self, client):
        r = client.post("/meetings/3/close")
        assert r.status_code == 200
        assert r.json()["data"]["status"] == "completed"
        assert r.json()["message"] == "Rapat berhasil ditutup"

    def test_close_twice(self, client):
        client.post("/meetings/3/close")
        r = client.post("/meetings/3/close")
        assert r.status_code == 409
        assert r.json()["detail"]["error"] == "Rapat sudah ditutup"


class TestVotingEndpoints:
    """Voting and results over HTTP"""

    def vote(self, client, member_id, choice, meeting_id="3", agenda_item_id="agenda-2", **kwargs):
        return client.post("/meetings/vote", json={
            "meeting_id": meeting_id,
            "agenda_item_id": agenda_item_id,
            "member_id": member_id,
            "choice": choice,
        }, **kwargs)

    def test_submit_vote(self, client):
        r = self.vote(client, "4", "reject")
        assert r.status_code == 200
        body = r.json()
        assert body["message"] == "Suara berhasil disimpan"
        assert body["data"] == {
            "approve": 2, "reject": 1, "abstain": 1,
            "voters": ["1", "2", "3", "4"], "total_votes": 4,
        }

    def test_duplicate_vote(self, client):
        r = self.vote(client, "1", "approve")
        assert r.status_code == 409
        assert r.json()["detail"] == {
            "success": False,
            "error": "Anda sudah memberikan suara untuk agenda ini",
            "code": "duplicate_vote",
        }

        results = client.get("/meetings/3/agenda/agenda-2/results").json()["data"]
        assert (results["approve"], results["reject"], results["abstain"]) == (2, 0, 1)

    def test_vote_on_completed_meeting(self, client):
        r = self.vote(client, "6", "approve", meeting_id="2")
        assert r.status_code == 409
        assert r.json()["detail"]["error"] == "Voting tidak dapat dilakukan pada rapat yang sudah selesai"

    def test_vote_on_item_without_vote(self, client):
        r = self.vote(client, "4", "approve", agenda_item_id="agenda-1")
        assert r.status_code == 409
        assert r.json()["detail"]["error"] == "Agenda ini tidak memerlukan voting"

    def test_vote_unknown_item(self, client):
        r = self.vote(client, "4", "approve", agenda_item_id="agenda-7")
        assert r.status_code == 404

    def test_vote_invalid_choice(self, client):
        r = self.vote(client, "4", "maybe", headers={"Accept-Language": "en"})
        assert r.status_code == 400
        assert "maybe" in r.json()["detail"]["error"]

    def test_vote_missing_choice(self, client):
        r = client.post("/meetings/vote", json={
            "meeting_id": "3", "agenda_item_id": "agenda-2", "member_id": "4"
        }, headers={"Accept-Language": "id"})
        assert r.status_code == 400
        assert r.json()["detail"] == {
            "success": False,
            "error": "Kolom choice wajib diisi",
            "code": "validation_failure",
        }
        results = client.get("/meetings/3/agenda/agenda-2/results").json()["data"]
        assert results["total_votes"] == 3

    def test_camel_case_vote_and_attendance(self, client):
        r = client.post("/meetings/vote", json={
            "meetingId": "3", "agendaItemId": "agenda-2", "memberId": "5", "choice": "approve"
        })
        assert r.status_code == 200
        assert r.json()["data"]["voters"][-1] == "5"

        r = client.post("/meetings/3/attendance", json={"memberIds": ["5"]})
        assert r.status_code == 200
        assert r.json()["data"]["attendees"][-1] == "5"

    def test_vote_results(self, client):
        r = client.get("/meetings/2/agenda/agenda-2/results")
        assert r.status_code == 200
        assert r.json()["data"]["total_votes"] == 5
        assert r.json()["data"]["approve"] == 4

    def test_results_for_item_without_vote(self, client):
        r = client.get("/meetings/1/agenda/agenda-1/results")
        assert r.status_code == 404
        assert r.json()["detail"]["error"] == "Hasil voting tidak ditemukan"

    def test_full_meeting_flow(self, client):
        meeting_id = create_meeting(client).json()["data"]["id"]

        assert client.post(f"/meetings/{meeting_id}/start").status_code == 200
        assert client.post(f"/meetings/{meeting_id}/attendance",
                           json={"member_ids": ["1", "2", "3"]}).status_code == 200
        for member_id, choice in [("1", "approve"), ("2", "approve"), ("3", "reject")]:
            r = self.vote(client, member_id, choice, meeting_id=meeting_id)
            assert r.status_code == 200
        assert client.post(f"/meetings/{meeting_id}/close").status_code == 200

        results = client.get(f"/meetings/{meeting_id}/agenda/agenda-2/results").json()["data"]
        assert results == {
            "approve": 2, "reject": 1, "abstain": 0,
            "voters": ["1", "2", "3"], "total_votes": 3,
        }
        assert self.vote(client, "4", "approve", meeting_id=meeting_id).status_code == 409


class TestPermissionEnforcement:
    """Role checks via the X-User-Role header"""

    def test_missing_role(self, guarded_client):
        r = guarded_client.get("/meetings")
        assert r.status_code == 401

    def test_member_can_view_and_vote(self, guarded_client):
        headers = {"X-User-Role": "member"}
        assert guarded_client.get("/meetings", headers=headers).status_code == 200
        r = guarded_client.post("/meetings/vote", headers=headers, json={
            "meeting_id": "3", "agenda_item_id": "agenda-2", "member_id": "4", "choice": "approve"
        })
        assert r.status_code == 200

    def test_member_cannot_create_or_close(self, guarded_client):
        headers = {"X-User-Role": "member"}
        r = guarded_client.post("/meetings", headers=headers,
                                json={"title": "x", "date": "2025-01-01", "location": "y"})
        assert r.status_code == 403
        assert r.json()["detail"]["code"] == "permission_denied"
        assert guarded_client.post("/meetings/3/close", headers=headers).status_code == 403

    def test_viewer_cannot_view(self, guarded_client):
        r = guarded_client.get("/meetings/1", headers={"X-User-Role": "viewer"})
        assert r.status_code == 403

    def test_unknown_role(self, guarded_client):
        r = guarded_client.get("/meetings", headers={"X-User-Role": "treasurer"})
        assert r.status_code == 403

    def test_admin_can_manage(self, guarded_client):
        headers = {"X-User-Role": "admin"}
        r = guarded_client.post("/meetings", headers=headers,
                                json={"title": "x", "date": "2025-01-01", "location": "y"})
        assert r.status_code == 201
        assert guarded_client.post("/meetings/3/close", headers=headers).status_code == 200

    def test_admin_actions_are_audited_with_role(self, guarded_client):
        guarded_client.post("/meetings/3/close", headers={"X-User-Role": "admin"})

        trail = koperasi.api.auth.cooperative_system.audit_trail
        event = trail.get_events_for_entity("meeting", "3")[-1]
        assert event.user_id == "admin"
