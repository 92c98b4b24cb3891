"""
HTTP tests through the Flask test client
"""

import base64
import gc
import weakref

import pytest

from campus_attendance.flask_main import create_app

CAMPUS = {"latitude": 12.9716, "longitude": 77.5946}


@pytest.fixture
def session_id(client):
    response = client.post("/attendance/sessions", json={
        "facultyId": "fac-1", "semester": 3, "branch": "CSE", "subject": "Data Structures"
    })
    assert response.status_code == 201
    return response.get_json()["session"]["id"]


@pytest.fixture
def live_token(core, session_id):
    session = core.sessions.get_session(session_id)
    return core.tokens.issue(session).token


def verify(client, session_id, token, student_id="stu-1", **coords):
    body = {"sessionId": session_id, "token": token, "studentId": student_id}
    body.update(coords)
    return client.post("/attendance/verify-qr", json=body)


def test_create_and_fetch_session(client, session_id):
    data = client.get(f"/attendance/sessions/{session_id}").get_json()["session"]
    assert data["isActive"] is True
    assert data["geofencingEnabled"] is True
    assert data["endedAt"] is None
    assert data["semester"] == 3


def test_create_session_validation(client):
    response = client.post("/attendance/sessions", json={"facultyId": "fac-1", "semester": 0, "branch": "CSE"})
    assert response.status_code == 422
    body = response.get_json()
    assert body["error_type"] == "validation_error"
    fields = {e["field"] for e in body["extra_data"]["errors"]}
    assert {"semester", "subject"} <= fields


def test_non_json_body_is_rejected(client):
    response = client.post("/attendance/sessions", data="nope", content_type="text/plain")
    assert response.status_code == 422


def test_faculty_active_sessions(client, session_id):
    data = client.get("/attendance/sessions/faculty/fac-1").get_json()
    assert data["total_count"] == 1
    assert data["sessions"][0]["id"] == session_id
    assert client.get("/attendance/sessions/faculty/fac-9").get_json()["total_count"] == 0


def test_unknown_session_is_404(client):
    response = client.get("/attendance/sessions/does-not-exist")
    assert response.status_code == 404
    assert response.get_json()["error_type"] == "resource_not_found"


def test_current_qr_code(client, session_id, live_token):
    data = client.get(f"/attendance/sessions/{session_id}/qr").get_json()

    assert data["token"]["token"] == live_token
    assert data["payload"]["sessionId"] == session_id
    assert data["payload"]["subject"] == "Data Structures"
    assert data["qr_code"].startswith("data:image/svg+xml;base64,")
    svg = base64.b64decode(data["qr_code"].split(",", 1)[1]).decode()
    assert "<svg" in svg


def test_current_qr_without_live_token(client, session_id):
    assert client.get(f"/attendance/sessions/{session_id}/qr").status_code == 404


def test_verify_success_inside(client, session_id, live_token):
    response = verify(client, session_id, live_token, **CAMPUS)

    assert response.status_code == 201
    body = response.get_json()
    assert body["geofencingStatus"] == "inside"
    assert body["attendance"]["status"] == "present"
    assert body["attendance"]["studentId"] == "stu-1"
    assert body["attendance"]["markedBy"] is None


def test_verify_duplicate(client, session_id, live_token):
    assert verify(client, session_id, live_token).status_code == 201

    response = verify(client, session_id, live_token)
    assert response.status_code == 409
    assert response.get_json()["error_type"] == "duplicate_attendance"

    records = client.get(f"/attendance/sessions/{session_id}/records").get_json()
    assert records["total_count"] == 1


def test_verify_expired_token(client, clock, session_id, live_token):
    clock.advance(1999)
    assert verify(client, session_id, live_token, student_id="early").status_code == 201

    clock.advance(2)
    response = verify(client, session_id, live_token, student_id="late")
    assert response.status_code == 400
    assert response.get_json()["error_type"] == "invalid_qr_token"


def test_verify_unknown_token(client, session_id, live_token):
    response = verify(client, session_id, "TK_forged")
    assert response.status_code == 400
    assert response.get_json()["error"] == "Invalid or expired QR code"


def test_verify_requires_both_coordinates(client, session_id, live_token):
    response = verify(client, session_id, live_token, latitude=12.97)
    assert response.status_code == 422


def test_verify_rejects_out_of_range_latitude(client, session_id, live_token):
    response = verify(client, session_id, live_token, latitude=123.0, longitude=77.0)
    assert response.status_code == 422


def test_manual_absent(client, session_id):
    response = client.post(f"/attendance/sessions/{session_id}/manual", json={
        "studentId": "stu-7", "action": "absent", "facultyId": "fac-1"
    })

    assert response.status_code == 201
    record = response.get_json()["attendance"]
    assert record["status"] == "absent"
    assert record["geofencingStatus"] == "unknown"
    assert record["markedBy"] == "fac-1"


def test_manual_invalid_action(client, session_id):
    response = client.post(f"/attendance/sessions/{session_id}/manual", json={
        "studentId": "stu-7", "action": "late", "facultyId": "fac-1"
    })
    assert response.status_code == 422


def test_manual_after_scan_is_duplicate(client, session_id, live_token):
    verify(client, session_id, live_token, student_id="stu-2")
    response = client.post(f"/attendance/sessions/{session_id}/manual", json={
        "studentId": "stu-2", "action": "absent", "facultyId": "fac-1"
    })
    assert response.status_code == 409


def test_stats(client, session_id, live_token):
    verify(client, session_id, live_token, student_id="stu-1", **CAMPUS)
    verify(client, session_id, live_token, student_id="stu-2", latitude=12.9851, longitude=77.5946)
    client.post(f"/attendance/sessions/{session_id}/manual", json={
        "studentId": "stu-3", "action": "absent", "facultyId": "fac-1"
    })

    stats = client.get(f"/attendance/sessions/{session_id}/stats?total_enrolled=4").get_json()
    assert stats["totalMarked"] == 3
    assert stats["present"] == 2
    assert stats["absent"] == 1
    assert stats["outsidePresent"] == 1
    assert stats["manualEntries"] == 1
    assert stats["attendancePercentage"] == 50
    assert stats["notMarked"] == 1


def test_stats_rejects_bad_enrollment(client, session_id):
    response = client.get(f"/attendance/sessions/{session_id}/stats?total_enrolled=abc")
    assert response.status_code == 422


def test_student_records(client, session_id, live_token):
    verify(client, session_id, live_token, student_id="stu-5")
    data = client.get("/attendance/students/stu-5/records").get_json()
    assert data["total_count"] == 1
    assert data["records"][0]["sessionId"] == session_id


def test_end_session_is_one_way(client, session_id):
    response = client.post(f"/attendance/sessions/{session_id}/end")
    assert response.status_code == 200
    assert response.get_json()["session"]["isActive"] is False
    assert response.get_json()["session"]["endedAt"] is not None

    again = client.post(f"/attendance/sessions/{session_id}/end")
    assert again.status_code == 409

    qr = client.get(f"/attendance/sessions/{session_id}/qr")
    assert qr.status_code == 409
    assert qr.get_json()["error_type"] == "conflict_error"


def test_token_probe(client, session_id, live_token):
    ok = client.get(f"/attendance/qr-tokens/{live_token}?session_id={session_id}")
    assert ok.status_code == 200 and ok.get_json()["valid"] is True

    wrong = client.get(f"/attendance/qr-tokens/{live_token}?session_id=other")
    assert wrong.status_code == 404

    missing = client.get(f"/attendance/qr-tokens/{live_token}")
    assert missing.status_code == 422


def test_cleanup_endpoint(client, clock, live_token):
    clock.advance(2000)
    data = client.delete("/attendance/qr-tokens/cleanup").get_json()
    assert data["removed"] == 1


def test_health_and_info(client):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.get_json()["storage"]["backend"] == "memory"

    info = client.get("/info").get_json()
    assert info["qr_rotation_interval_ms"] == 2000
    assert info["geofence"]["radius_meters"] == 1000


def test_unknown_endpoint(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.get_json()["error_type"] == "not_found"


def test_verify_on_ended_session(client, session_id, live_token):
    client.post(f"/attendance/sessions/{session_id}/end")

    response = verify(client, session_id, live_token)
    assert response.status_code == 400
    assert response.get_json()["error_type"] == "invalid_qr_token"


def test_discarded_app_is_not_kept_alive(settings, store, clock):
    app = create_app(settings=settings, store=store, clock=clock, start_rotation=False)
    core_ref = weakref.ref(app.extensions["campus_attendance"])

    del app
    gc.collect()

    assert core_ref() is None
